from receipt_printer.cli import main

raise SystemExit(main())
