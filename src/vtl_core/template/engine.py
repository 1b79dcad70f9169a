"""Template parsing and rendering entry points."""

from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Any

from vtl_core.config import EngineConfig, load_config
from vtl_core.config.models import DEFAULT_MAX_DEPTH
from vtl_core.errors import ParseError, create_error
from vtl_core.telemetry.instrumentation import instrument_parse, instrument_render
from vtl_core.telemetry.logging import configure_logging, get_logger

from .context import EvaluationContext
from .macro import Macro
from .nodes import Node, render_value
from .parser import Parser
from .reparser import Reparser
from .resolver import MemberResolver, ReflectiveResolver

logger = get_logger("template")

_DEFAULT_RESOLVER = ReflectiveResolver()


@dataclass(frozen=True, eq=False)
class Template:
    """A parsed template: immutable tree plus macro table.

    Each ``render`` call gets a fresh EvaluationContext, so one Template can be
    rendered repeatedly and from several threads at once.
    """

    root: Node
    macros: Mapping[str, Macro]

    def render(
        self,
        variables: Mapping[str, Any] | None = None,
        *,
        resolver: MemberResolver | None = None,
        max_depth: int = DEFAULT_MAX_DEPTH,
    ) -> str:
        """Render the template.

        Args:
            variables: Variable bindings; not modified
            resolver: Member resolution capability (defaults to ReflectiveResolver)
            max_depth: Maximum nesting of macro calls

        Returns:
            Rendered text

        Raises:
            EvaluationError: On the first evaluation failure, including
                RECURSION_LIMIT when nesting exhausts the interpreter stack
        """
        variables = variables or {}
        with instrument_render(len(variables)) as span_attributes:
            context = EvaluationContext(
                variables, self.macros, resolver or _DEFAULT_RESOLVER, max_depth
            )
            try:
                output = render_value(self.root.evaluate(context))
            except RecursionError as e:
                raise create_error(
                    "RECURSION_LIMIT",
                    cause=e,
                    reason="Template nesting exceeded the interpreter stack depth",
                ) from e
            span_attributes["template.output_length"] = len(output)
        logger.debug("Template rendered", output_length=len(output))
        return output


def parse(text: str) -> Template:
    """Parse template text.

    Args:
        text: Template source

    Returns:
        Parsed Template

    Raises:
        ParseError: On the first syntax error, or PARSE_TOO_DEEP when nesting
            exhausts the interpreter stack
    """
    with instrument_parse(len(text)) as span_attributes:
        try:
            tokens = Parser(text).parse_tokens()
            root, macros = Reparser(tokens).reparse()
        except RecursionError as e:
            raise create_error("PARSE_TOO_DEEP", cause=e) from e
        span_attributes["template.token_count"] = len(tokens)
        span_attributes["template.macro_count"] = len(macros)
    logger.debug("Template parsed", tokens=len(tokens), macros=len(macros))
    return Template(root=root, macros=MappingProxyType(macros))


class TemplateEngine:
    """Parse, render and check templates with shared settings.

    Example:
        engine = TemplateEngine()
        engine.render("Hello $name!", {"name": "world"})
    """

    def __init__(
        self,
        config: EngineConfig | None = None,
        resolver: MemberResolver | None = None,
    ):
        """Initialize template engine.

        Args:
            config: Engine configuration (defaults to EngineConfig())
            resolver: Member resolution capability (defaults to ReflectiveResolver)
        """
        self._config = config or EngineConfig()
        self._resolver = resolver or ReflectiveResolver()

    @classmethod
    def from_config(
        cls,
        path: str | Path | None = None,
        resolver: MemberResolver | None = None,
        overrides: dict[str, Any] | None = None,
    ) -> "TemplateEngine":
        """Create an engine from a YAML config file and apply its logging settings.

        The configuration is loaded through the process-wide default loader, so
        ``get_config_loader().get()`` returns it afterwards.

        Args:
            path: Config file path; see ConfigLoader.load for the lookup order
            resolver: Member resolution capability
            overrides: Settings deep-merged over the file contents

        Returns:
            Configured TemplateEngine
        """
        config = load_config(path, overrides=overrides)
        configure_logging(config.logging.level, config.logging.format)
        return cls(config, resolver)

    @property
    def config(self) -> EngineConfig:
        return self._config

    @property
    def resolver(self) -> MemberResolver:
        return self._resolver

    def parse(self, text: str) -> Template:
        return parse(text)

    def render(
        self,
        template: Template | str,
        variables: Mapping[str, Any] | None = None,
    ) -> str:
        """Render a template, parsing it first if given as text.

        Args:
            template: Parsed Template or template source
            variables: Variable bindings

        Returns:
            Rendered text

        Raises:
            ParseError: If ``template`` is text and does not parse
            EvaluationError: On the first evaluation failure
        """
        if isinstance(template, str):
            template = self.parse(template)
        return template.render(
            variables,
            resolver=self._resolver,
            max_depth=self._config.evaluation.max_depth,
        )

    def validate(self, text: str) -> list[str]:
        """Check template syntax without rendering.

        Args:
            text: Template source

        Returns:
            List of error messages (empty if valid)
        """
        try:
            self.parse(text)
        except ParseError as e:
            return [e.message]
        return []
