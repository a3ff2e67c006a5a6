"""Allow ``python -m typhoon_scaffold``."""

from typhoon_scaffold.cli import main

main()
