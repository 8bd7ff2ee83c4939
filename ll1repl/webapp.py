from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse
from pydantic import BaseModel, Field

from ll1repl import __version__
from ll1repl.config import Settings
from ll1repl.errors import GrammarDefinitionError
from ll1repl.grammar import EPS, Grammar, default_expression_grammar, parse_grammar_lines
from ll1repl.lexer import terminals_from_words
from ll1repl.parser import LL1PredictiveParser, NonterminalNode, ParseNode, SyntaxIssue, TreeReady, parse_tokens
from ll1repl.predict import calculate_follow_set_with_trace, find_left_recursion, first, predict_set
from ll1repl.repl import EvaluationResult, ReplSession
from ll1repl.table import ParseTable, fill_parse_table

logger = logging.getLogger(__name__)

app = FastAPI(title="LL(1) Notebook Interpreter", version=__version__)

app.add_middleware(
	CORSMiddleware,
	allow_origins=["*"],
	allow_credentials=True,
	allow_methods=["*"],
	allow_headers=["*"],
)


class LL1Request(BaseModel):
	# Example: "num + ( num + num )"
	tokens: str = ""
	trace: bool = True
	# Optional: analyse a custom grammar instead of the built-in expression grammar
	grammar_start: Optional[str] = None
	grammar_lines: Optional[List[str]] = None
	# Optional: include the FOLLOW pass log
	include_working: bool = False


class EvalRequest(BaseModel):
	# Example: "1 + 2; Sqrt[16]; Out[0] * x;"
	source: str
	workers: Optional[int] = Field(default=None, ge=1, le=32)


def _tree_to_json(node: ParseNode) -> Dict[str, Any]:
	if isinstance(node, NonterminalNode):
		return {"symbol": node.symbol.id, "children": [_tree_to_json(c) for c in node.children]}
	return {"terminal": node.terminal, "lexeme": node.token.lexeme}


def _table_to_json(grammar: Grammar, entries: Dict[str, Dict[str, Any]]) -> Dict[str, Dict[str, str]]:
	terminals = sorted(t.id for t in grammar.terminals)
	table_out: Dict[str, Dict[str, str]] = {}
	for nt in sorted(nt.id for nt in grammar.nonterminals):
		row = entries.get(nt, {})
		table_out[nt] = {t: str(row[t]) if t in row else "" for t in terminals}
	return table_out


def _result_to_json(result: EvaluationResult) -> Dict[str, Any]:
	return {"seq": result.seq, "ok": result.ok, "output": result.text}


@app.get("/", response_class=HTMLResponse)
def index() -> HTMLResponse:
	return HTMLResponse(
		"<h2>LL(1) Notebook Interpreter API</h2>"
		"<p>POST <code>/api/eval</code> with JSON: <code>{\"source\": \"1 + 2; 3 * 4;\"}</code></p>"
		"<p>POST <code>/api/ll1</code> with JSON: <code>{\"tokens\": \"num + num\"}</code></p>"
	)


@app.get("/health")
def health() -> Dict[str, str]:
	return {"status": "ok"}


@app.post("/api/ll1")
def ll1_lab(req: LL1Request) -> Dict[str, Any]:
	"""FIRST/FOLLOW/PREDICT sets, the LL(1) table and a traced table-driven parse of `tokens`."""
	if (req.grammar_start is None) != (req.grammar_lines is None):
		raise HTTPException(status_code=422, detail="grammar_start and grammar_lines must be given together.")
	try:
		if req.grammar_lines is not None and req.grammar_start is not None:
			grammar = parse_grammar_lines(start=req.grammar_start, lines=req.grammar_lines, name="custom")
		else:
			grammar = default_expression_grammar()
		follow, follow_passes = calculate_follow_set_with_trace(grammar)
		entries, conflicts = fill_parse_table(grammar)
	except GrammarDefinitionError as e:
		raise HTTPException(status_code=422, detail=str(e))

	words = [t for t in req.tokens.split() if t]
	result: Optional[Dict[str, Any]] = None
	if not conflicts:
		parser = LL1PredictiveParser(ParseTable(grammar, entries), trace=req.trace)
		outcome = parse_tokens(parser, terminals_from_words(words, eof=grammar.eof.id))
		result = {
			"accepted": isinstance(outcome, TreeReady),
			"error": outcome.message if isinstance(outcome, SyntaxIssue) else None,
			"tree": _tree_to_json(outcome.root) if isinstance(outcome, TreeReady) else None,
			"steps": [
				{"stack": step.stack, "lookahead": step.lookahead, "action": step.action.replace(EPS, "eps")}
				for step in parser.last_steps
			],
		}

	nonterminals = sorted(grammar.nonterminals, key=lambda s: s.id)
	return {
		"grammar": {
			"start": grammar.start.id,
			"eof": grammar.eof.id,
			"nonterminals": [nt.id for nt in nonterminals],
			"terminals": sorted(t.id for t in grammar.terminals),
			"productions": [str(p) for p in grammar.productions],
		},
		"left_recursive": sorted(find_left_recursion(grammar)),
		"first": {nt.id: sorted(first([nt], grammar.productions)) for nt in nonterminals},
		"follow": {k: sorted(v) for k, v in sorted(follow.items())},
		"predict": [{"production": str(p), "lookaheads": sorted(predict_set(p, grammar, follow))} for p in grammar.productions],
		"working": {"follow_passes": follow_passes} if req.include_working else None,
		"table": _table_to_json(grammar, entries),
		"conflicts": [str(c) for c in conflicts],
		"input": {"tokens": words, "tokens_with_eof": words + [grammar.eof.id]},
		"result": result,
	}


@app.post("/api/eval")
def evaluate_source(req: EvalRequest) -> Dict[str, Any]:
	"""Evaluate `;`-terminated commands; outputs come back in input order."""
	overrides = {"workers": req.workers} if req.workers else {}
	settings = Settings.from_env(**overrides)
	released: List[EvaluationResult] = []
	source = req.source if req.source.rstrip().endswith(";") else req.source + ";"

	with ReplSession(settings, on_release=released.append) as session:
		session.feed_text(source)
		session.drain()

	return {"outputs": [_result_to_json(r) for r in released]}
