from __future__ import annotations

import argparse
import sys
from typing import List, Optional

from ll1repl.config import Settings, configure_logging
from ll1repl.errors import GrammarDefinitionError
from ll1repl.grammar import default_expression_grammar
from ll1repl.report import format_report
from ll1repl.repl import run_repl


def build_arg_parser() -> argparse.ArgumentParser:
	ap = argparse.ArgumentParser(prog="ll1repl", description="Notebook-style expression REPL on an LL(1) parser.")
	mode = ap.add_mutually_exclusive_group()
	mode.add_argument("--tables", action="store_true", help="print FIRST/FOLLOW/PREDICT sets and the parse table, then exit")
	mode.add_argument("--serve", action="store_true", help="run the HTTP API under uvicorn")
	ap.add_argument("--workers", type=int, default=None, help="evaluation threads (default from LL1REPL_WORKERS or 4)")
	ap.add_argument("--debug", action="store_true", default=None, help="debug logging")
	return ap


def main(argv: Optional[List[str]] = None) -> int:
	args = build_arg_parser().parse_args(argv)
	settings = Settings.from_env(workers=args.workers, debug=args.debug)
	configure_logging(settings)

	try:
		if args.tables:
			print(format_report(default_expression_grammar(), max_follow_passes=settings.max_follow_passes))
			return 0
		if args.serve:
			import uvicorn

			uvicorn.run("ll1repl.webapp:app", host=settings.host, port=settings.port, log_level=settings.effective_log_level.lower())
			return 0
		return run_repl(settings)
	except GrammarDefinitionError as e:
		print(f"Grammar error: {e}", file=sys.stderr)
		return 2
	except KeyboardInterrupt:
		return 130


if __name__ == "__main__":
	sys.exit(main())
