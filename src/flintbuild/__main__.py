from flintbuild.cli import main

raise SystemExit(main())
