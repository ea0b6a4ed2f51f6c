from subtitle_flow.main import main

raise SystemExit(main())
