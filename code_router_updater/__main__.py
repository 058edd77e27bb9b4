from __future__ import annotations

from code_router_updater.cli import main

raise SystemExit(main())
