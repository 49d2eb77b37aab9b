from kdbq.cli import main

raise SystemExit(main())
