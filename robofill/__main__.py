from robofill.cli import main

raise SystemExit(main())
