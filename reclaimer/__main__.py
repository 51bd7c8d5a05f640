from reclaimer.cli import main

raise SystemExit(main())
