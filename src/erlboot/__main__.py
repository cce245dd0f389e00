from erlboot.cli import main

raise SystemExit(main())
