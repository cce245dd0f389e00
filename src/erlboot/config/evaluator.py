"""Evaluation of erlboot configuration scripts.

A configuration script is a sequence of small Python-syntax statements::

    root = env("ERLBOOT_ROOT", cwd())
    {"build_dir": root, "rebar_config": {"deps_dir": join(root, "deps")}}

Statements are evaluated one at a time against a binding environment that
carries over from one statement to the next. Only a safe subset of the
language is accepted: literals, names, containers, arithmetic, comparisons,
boolean logic, conditional expressions, subscripts, f-strings and calls.
Calls never reach Python directly; they are handed to a dispatcher supplied
by the host (see :mod:`erlboot.config.functions`).

A statement that fails to parse or evaluate is recorded and skipped, and
the remaining statements still run. Once the input is exhausted the earliest
recorded error is raised; otherwise the value of the last statement is the
result of the script.
"""

from __future__ import annotations

import ast
import operator
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterator, List, Optional, TextIO, Tuple, Union

from erlboot.config.functions import FunctionHandler
from erlboot.core.exceptions import ConfigError
from erlboot.core.logging import get_logger

LOGGER = get_logger(__name__)

FunctionDispatcher = Callable[[str, List[Any]], Any]

PARSE_ERROR = "parse_error"
EVALUATION_ERROR = "evaluation_error"
UNDEFINED_SCRIPT = "undefined_script"

# Upper bound for sequences produced by ``*`` so "x" * 10**9 cannot exhaust memory.
MAX_REPEAT_LENGTH = 1_000_000

_BINARY_OPERATORS: Dict[type, Callable[[Any, Any], Any]] = {
    ast.Add: operator.add,
    ast.Sub: operator.sub,
    ast.Mult: operator.mul,
    ast.Div: operator.truediv,
    ast.FloorDiv: operator.floordiv,
    ast.Mod: operator.mod,
}

_UNARY_OPERATORS: Dict[type, Callable[[Any], Any]] = {
    ast.USub: operator.neg,
    ast.UAdd: operator.pos,
    ast.Not: operator.not_,
}

_COMPARE_OPERATORS: Dict[type, Callable[[Any, Any], bool]] = {
    ast.Eq: operator.eq,
    ast.NotEq: operator.ne,
    ast.Lt: operator.lt,
    ast.LtE: operator.le,
    ast.Gt: operator.gt,
    ast.GtE: operator.ge,
    ast.In: lambda left, right: left in right,
    ast.NotIn: lambda left, right: left not in right,
    ast.Is: operator.is_,
    ast.IsNot: operator.is_not,
}

_NO_VALUE = object()


@dataclass(frozen=True)
class EvalError:
    """A failure recorded while evaluating one statement."""

    line: int
    category: str
    cause: Any

    def describe(self) -> str:
        return f"line {self.line}: {self.category}: {self.cause}"


class UnsupportedSyntax(Exception):
    """The script used a construct outside the allowed subset."""


class UnboundName(Exception):
    """The script referenced a name that has not been assigned."""


def split_statements(source: str) -> Iterator[Tuple[int, str]]:
    """Split script text into top-level statements.

    A statement ends at a newline or ``;`` outside brackets and strings.
    Comments are dropped and blank statements are skipped.

    Yields:
        ``(line, text)`` pairs where ``line`` is the 1-based line on which the
        statement starts.
    """
    buffer: List[str] = []
    start_line: Optional[int] = None
    depth = 0
    quote: Optional[str] = None
    line = 1
    i = 0
    length = len(source)

    def flush() -> Iterator[Tuple[int, str]]:
        nonlocal start_line
        text = "".join(buffer).strip()
        buffer.clear()
        if text and start_line is not None:
            yield start_line, text
        start_line = None

    while i < length:
        char = source[i]

        if quote is not None:
            if char == "\\" and i + 1 < length:
                buffer.append(source[i : i + 2])
                if source[i + 1] == "\n":
                    line += 1
                i += 2
                continue
            if source.startswith(quote, i):
                buffer.append(quote)
                i += len(quote)
                quote = None
                continue
            if char == "\n":
                if len(quote) == 1:
                    # Unterminated string; let the newline end the statement.
                    quote = None
                else:
                    buffer.append(char)
                    line += 1
                    i += 1
                    continue
            else:
                buffer.append(char)
                i += 1
                continue

        if char == "#":
            while i < length and source[i] != "\n":
                i += 1
            continue

        if char == "\\" and source.startswith("\n", i + 1):
            buffer.append(" ")
            line += 1
            i += 2
            continue

        if char == "\n" or (char == ";" and depth == 0):
            if char == "\n" and depth > 0:
                buffer.append(char)
            else:
                yield from flush()
            if char == "\n":
                line += 1
            i += 1
            continue

        if start_line is None and not char.isspace():
            start_line = line

        if char in "\"'":
            quote = char * 3 if source.startswith(char * 3, i) else char
            buffer.append(quote)
            i += len(quote)
            continue

        if char in "([{":
            depth += 1
        elif char in ")]}":
            depth = max(depth - 1, 0)

        buffer.append(char)
        i += 1

    yield from flush()


class ScriptEvaluator:
    """Evaluates configuration scripts statement by statement.

    Args:
        dispatcher: Called as ``dispatcher(name, args)`` for every function
            call in the script; its return value replaces the call.
        bindings: Initial binding environment.
    """

    def __init__(
        self,
        dispatcher: FunctionDispatcher,
        bindings: Optional[Dict[str, Any]] = None,
    ) -> None:
        self._dispatcher = dispatcher
        self._bindings: Dict[str, Any] = dict(bindings or {})
        self._errors: List[EvalError] = []

    @property
    def bindings(self) -> Dict[str, Any]:
        return dict(self._bindings)

    @property
    def errors(self) -> List[EvalError]:
        return list(self._errors)

    def evaluate(self, source: Union[str, TextIO], name: str = "<script>") -> Any:
        """Evaluate a whole script and return its last value.

        Args:
            source: Script text or a readable text stream.
            name: Label used in error messages (usually the file path).

        Returns:
            Value of the last statement that produced one.

        Raises:
            ConfigError: If any statement failed (the earliest failure is
                reported) or no statement produced a value.
        """
        self._errors = []
        text = source if isinstance(source, str) else source.read()
        last_value: Any = _NO_VALUE

        for line, statement in split_statements(text):
            value = self._run_statement(line, statement)
            if value is not _NO_VALUE:
                last_value = value

        if self._errors:
            first = self._errors[0]
            if len(self._errors) > 1:
                LOGGER.debug(f"{name}: {len(self._errors)} errors, reporting the first")
            raise ConfigError(
                f"{name}:{first.line}: {first.category}: {first.cause}",
                line=first.line,
                category=first.category,
                cause=first.cause,
            )
        if last_value is _NO_VALUE:
            raise ConfigError(f"{name}: undefined script", category=UNDEFINED_SCRIPT)
        return last_value

    def _run_statement(self, line: int, statement: str) -> Any:
        try:
            module = ast.parse(statement, mode="exec")
        except SyntaxError as e:
            offset = (e.lineno or 1) - 1
            self._record(line + offset, PARSE_ERROR, e.msg)
            return _NO_VALUE
        except ValueError as e:
            # source containing NUL bytes on older interpreters
            self._record(line, PARSE_ERROR, e)
            return _NO_VALUE

        staged = dict(self._bindings)
        value: Any = _NO_VALUE
        try:
            for node in module.body:
                value = self._exec(node, staged)
        except Exception as e:
            self._record(line, EVALUATION_ERROR, e)
            return _NO_VALUE

        self._bindings = staged
        return value

    def _record(self, line: int, category: str, cause: Any) -> None:
        LOGGER.debug(f"line {line}: {category}: {cause}")
        self._errors.append(EvalError(line=line, category=category, cause=cause))

    def _exec(self, node: ast.stmt, env: Dict[str, Any]) -> Any:
        if isinstance(node, ast.Expr):
            return _ExpressionEvaluator(env, self._dispatcher).visit(node.value)
        if isinstance(node, ast.Assign):
            targets = []
            for target in node.targets:
                if not isinstance(target, ast.Name):
                    raise UnsupportedSyntax("only plain names can be assigned")
                targets.append(target.id)
            value = _ExpressionEvaluator(env, self._dispatcher).visit(node.value)
            for target_name in targets:
                env[target_name] = value
            return value
        if isinstance(node, ast.Pass):
            return _NO_VALUE
        raise UnsupportedSyntax(f"unsupported statement: {type(node).__name__}")


class _ExpressionEvaluator:
    """Walks a single expression tree."""

    def __init__(self, env: Dict[str, Any], dispatcher: FunctionDispatcher) -> None:
        self._env = env
        self._dispatcher = dispatcher

    def visit(self, node: ast.AST) -> Any:
        method = getattr(self, f"_visit_{type(node).__name__}", None)
        if method is None:
            raise UnsupportedSyntax(f"unsupported expression: {type(node).__name__}")
        return method(node)

    def _visit_Constant(self, node: ast.Constant) -> Any:
        return node.value

    def _visit_Name(self, node: ast.Name) -> Any:
        try:
            return self._env[node.id]
        except KeyError:
            raise UnboundName(f"variable '{node.id}' is unbound") from None

    def _visit_List(self, node: ast.List) -> List[Any]:
        return [self.visit(element) for element in node.elts]

    def _visit_Tuple(self, node: ast.Tuple) -> Tuple[Any, ...]:
        return tuple(self.visit(element) for element in node.elts)

    def _visit_Set(self, node: ast.Set) -> set:
        return {self.visit(element) for element in node.elts}

    def _visit_Dict(self, node: ast.Dict) -> Dict[Any, Any]:
        result: Dict[Any, Any] = {}
        for key, value in zip(node.keys, node.values):
            if key is None:
                raise UnsupportedSyntax("dict unpacking is not supported")
            result[self.visit(key)] = self.visit(value)
        return result

    def _visit_BinOp(self, node: ast.BinOp) -> Any:
        op = _BINARY_OPERATORS.get(type(node.op))
        if op is None:
            raise UnsupportedSyntax(f"unsupported operator: {type(node.op).__name__}")
        left = self.visit(node.left)
        right = self.visit(node.right)
        if isinstance(node.op, ast.Mult):
            _check_repeat(left, right)
        return op(left, right)

    def _visit_UnaryOp(self, node: ast.UnaryOp) -> Any:
        op = _UNARY_OPERATORS.get(type(node.op))
        if op is None:
            raise UnsupportedSyntax(f"unsupported operator: {type(node.op).__name__}")
        return op(self.visit(node.operand))

    def _visit_BoolOp(self, node: ast.BoolOp) -> Any:
        value: Any = None
        for operand in node.values:
            value = self.visit(operand)
            if isinstance(node.op, ast.And) and not value:
                return value
            if isinstance(node.op, ast.Or) and value:
                return value
        return value

    def _visit_Compare(self, node: ast.Compare) -> bool:
        left = self.visit(node.left)
        for op_node, comparator in zip(node.ops, node.comparators):
            right = self.visit(comparator)
            if not _COMPARE_OPERATORS[type(op_node)](left, right):
                return False
            left = right
        return True

    def _visit_IfExp(self, node: ast.IfExp) -> Any:
        if self.visit(node.test):
            return self.visit(node.body)
        return self.visit(node.orelse)

    def _visit_Subscript(self, node: ast.Subscript) -> Any:
        return self.visit(node.value)[self.visit(node.slice)]

    def _visit_Slice(self, node: ast.Slice) -> slice:
        return slice(
            self.visit(node.lower) if node.lower else None,
            self.visit(node.upper) if node.upper else None,
            self.visit(node.step) if node.step else None,
        )

    def _visit_JoinedStr(self, node: ast.JoinedStr) -> str:
        return "".join(str(self.visit(part)) for part in node.values)

    def _visit_FormattedValue(self, node: ast.FormattedValue) -> str:
        value = self.visit(node.value)
        if node.conversion == ord("r"):
            value = repr(value)
        elif node.conversion == ord("a"):
            value = ascii(value)
        elif node.conversion == ord("s"):
            value = str(value)
        spec = self.visit(node.format_spec) if node.format_spec else ""
        return format(value, spec)

    def _visit_Call(self, node: ast.Call) -> Any:
        if not isinstance(node.func, ast.Name):
            raise UnsupportedSyntax("only named functions can be called")
        if node.keywords:
            raise UnsupportedSyntax("keyword arguments are not supported")
        args = []
        for arg in node.args:
            if isinstance(arg, ast.Starred):
                raise UnsupportedSyntax("argument unpacking is not supported")
            args.append(self.visit(arg))
        return self._dispatcher(node.func.id, args)


def _check_repeat(left: Any, right: Any) -> None:
    for sequence, count in ((left, right), (right, left)):
        if isinstance(sequence, (str, bytes, list, tuple)) and isinstance(count, int):
            if len(sequence) * count > MAX_REPEAT_LENGTH:
                raise ValueError("sequence repetition result is too large")


def evaluate_script(
    source: Union[str, TextIO],
    dispatcher: Optional[FunctionDispatcher] = None,
    name: str = "<script>",
) -> Any:
    """Evaluate ``source`` with a fresh environment.

    Uses the default :class:`~erlboot.config.functions.FunctionHandler` when no
    dispatcher is given.
    """
    if dispatcher is None:
        dispatcher = FunctionHandler()
    return ScriptEvaluator(dispatcher).evaluate(source, name=name)
