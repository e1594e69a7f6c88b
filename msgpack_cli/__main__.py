import sys

from msgpack_cli.cli import main

sys.exit(main())
