from newsflash.cli import main

raise SystemExit(main())
