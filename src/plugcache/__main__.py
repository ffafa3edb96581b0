from plugcache.interfaces.cli.cli import start

raise SystemExit(start())
