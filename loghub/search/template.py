"""Pre-parsed query templates for structured log stores.

Templates are backend-native query bodies (usually JSON) with ``$name`` or
``${name}`` placeholders. Braced names may contain dots, dashes and slashes so
label keys such as ``${labels.app.kubernetes.io/name}`` can be referenced.
Values are substituted verbatim; ``$$`` is a literal dollar sign.
"""

from collections.abc import Collection, Mapping, Sequence
from string import Template

from loghub.contracts.errors import ConfigurationError, TemplateRenderError
from loghub.contracts.logs_v1 import QueryParameters


class _Placeholders(Template):
    braceidpattern = r"(?a:[_a-z][-_a-z0-9./]*)"


class QueryTemplate:
    def __init__(self, text: str):
        self.text = text
        self._template = _Placeholders(text)
        if not self._template.is_valid():
            raise ConfigurationError(f"invalid query template: {text!r}")

    @property
    def placeholders(self) -> list[str]:
        return self._template.get_identifiers()

    def require_known(self, names: Collection[str], prefixes: Sequence[str] = ()) -> None:
        """Raise ConfigurationError for placeholders no render context will supply."""
        unknown = [
            p for p in self.placeholders if p not in names and not p.startswith(tuple(prefixes))
        ]
        if unknown:
            raise ConfigurationError(f"query template references unknown values: {', '.join(unknown)}")

    def render(self, context: Mapping[str, str]) -> str:
        try:
            return self._template.substitute(context)
        except KeyError as e:
            raise TemplateRenderError(f"template references unknown value {e.args[0]!r}") from e
        except ValueError as e:
            raise TemplateRenderError(f"error executing template: {e}") from e


PARAM_NAMES = frozenset(
    {"query", "limit", "page", "start", "end", "type", "id", "limitPerItem", "limitBytesPerItem"}
)
LABEL_PREFIX = "labels."


def labels_context(params: QueryParameters) -> dict[str, str]:
    return dict(params.labels)


def params_context(params: QueryParameters) -> dict[str, str]:
    context = {
        "query": params.query,
        "limit": str(params.limit),
        "page": params.page,
        "start": params.get_start_iso(),
        "end": params.get_end_iso(),
        "type": params.type,
        "id": params.id,
        "limitPerItem": str(params.limit_per_item),
        "limitBytesPerItem": str(params.limit_bytes_per_item),
    }
    for key, value in params.labels.items():
        context[f"{LABEL_PREFIX}{key}"] = value
    return context
