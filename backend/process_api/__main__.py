"""Allow `python -m process_api`."""

from process_api.server import main

raise SystemExit(main())
