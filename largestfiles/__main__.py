from largestfiles.app import main

raise SystemExit(main())
