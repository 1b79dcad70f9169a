"""VTL Core - Velocity-style template engine.

Parses templates with references, #if/#foreach/#set directives, expressions and
macros into an immutable tree, then renders that tree against caller variables.
"""

from vtl_core.errors import EvaluationError, ParseError, VTLError
from vtl_core.template import Template, TemplateEngine, parse

__version__ = "1.0.0"
__all__ = [
    "__version__",
    "parse",
    "Template",
    "TemplateEngine",
    "VTLError",
    "ParseError",
    "EvaluationError",
]
