from clue_play.cli import main

raise SystemExit(main())
