from ab_reference_check.reference_check_main import main

raise SystemExit(main())
