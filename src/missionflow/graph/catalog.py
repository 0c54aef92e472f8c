"""Step catalog - Declared definitions of executable steps.

The catalog is owned by the executor side; the editor uses it to show
argument editors and to seed node argument values. Steps whose function
name is not registered get a definition synthesized from their stored
arguments.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable

from missionflow.graph.FlowNode import FlowNode
from missionflow.mission.arguments import coerce_value, to_stored
from missionflow.mission.models import ArgValue, Position, Step, StepArgument, action


@dataclass
class ArgumentDefinition:
    """One declared argument of a step."""

    name: str
    type: str = "str"
    default: Any = None
    optional: bool = False


@dataclass
class StepDefinition:
    """A step as declared by the executor.

    Attributes:
        name: Function name used by action steps.
        import_path: Import location reported by the executor.
        file: Source file reported by the executor.
        arguments: Ordered argument declarations.
    """

    name: str
    import_path: str = ""
    file: str = ""
    arguments: list[ArgumentDefinition] = field(default_factory=list)

    def argument(self, name: str) -> ArgumentDefinition | None:
        for arg in self.arguments:
            if arg.name == name:
                return arg
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "import": self.import_path,
            "file": self.file,
            "arguments": [
                {"name": a.name, "type": a.type, "default": a.default, "optional": a.optional}
                for a in self.arguments
            ],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> StepDefinition:
        return cls(
            name=str(data.get("name") or ""),
            import_path=str(data.get("import") or ""),
            file=str(data.get("file") or ""),
            arguments=[
                ArgumentDefinition(
                    name=str(a.get("name") or ""),
                    type=str(a.get("type") or "str"),
                    default=a.get("default"),
                    optional=bool(a.get("optional", False)),
                )
                for a in (data.get("arguments") or [])
                if isinstance(a, dict)
            ],
        )


def _raw(value: Any) -> str:
    return "" if value is None else str(value)


class StepCatalog:
    """Registered step definitions keyed by function name."""

    def __init__(self, definitions: Iterable[StepDefinition] = ()) -> None:
        self._definitions: dict[str, StepDefinition] = {}
        for definition in definitions:
            self.register(definition)

    @classmethod
    def from_list(cls, items: Iterable[dict[str, Any]]) -> StepCatalog:
        """Build a catalog from executor-provided dicts."""
        return cls(StepDefinition.from_dict(item) for item in items if isinstance(item, dict))

    def register(self, definition: StepDefinition) -> None:
        self._definitions[definition.name] = definition

    def lookup(self, function_name: str) -> StepDefinition | None:
        """Return the registered definition, or None if unknown."""
        return self._definitions.get(function_name)

    def __contains__(self, function_name: object) -> bool:
        return function_name in self._definitions

    def __len__(self) -> int:
        return len(self._definitions)

    def __iter__(self):
        return iter(self._definitions.values())

    def definition_for(self, step: Step) -> StepDefinition:
        """Return the display definition of a step.

        Unregistered steps get one synthesized from their stored arguments:
        names (``arg<i>`` when empty), types, and stored values as defaults.
        """
        match = self.lookup(step.function_name)
        if match is not None:
            return match
        return StepDefinition(
            name=step.function_name,
            arguments=[
                ArgumentDefinition(name=arg.name or f"arg{i}", type=arg.type, default=arg.value)
                for i, arg in enumerate(step.arguments)
            ],
        )

    def initial_args(self, step: Step) -> dict[str, ArgValue]:
        """Coerced argument values for the node of a step.

        Registered steps follow the catalog's argument order, matching
        stored arguments by position and falling back to the declared
        default. Unregistered steps use their stored arguments as-is.
        """
        match = self.lookup(step.function_name)
        if match is None:
            return {
                arg.name or f"arg{i}": coerce_value(arg.type, _raw(arg.value))
                for i, arg in enumerate(step.arguments)
            }
        values: dict[str, ArgValue] = {}
        for i, decl in enumerate(match.arguments):
            stored = step.arguments[i].value if i < len(step.arguments) else None
            raw = stored if stored is not None else decl.default
            values[decl.name] = coerce_value(decl.type, _raw(raw))
        return values

    def default_args(self, definition: StepDefinition) -> dict[str, ArgValue]:
        """Coerced defaults for a freshly created node."""
        return {a.name: coerce_value(a.type, _raw(a.default)) for a in definition.arguments}


def step_from_unattached(node: FlowNode) -> Step:
    """Convert an unattached node into an action step.

    Values are stored as strings; types come from the node's definition
    and default to ``"str"``.
    """
    definition = node.definition
    arguments = []
    for name, value in node.args.items():
        decl = definition.argument(name) if definition is not None else None
        arguments.append(
            StepArgument(name=name, value=to_stored(value), type=decl.type if decl else "str")
        )
    name = definition.name if definition is not None and definition.name else node.text
    return action(name, arguments=arguments, position=Position(node.position.x, node.position.y))


__all__ = [
    "ArgumentDefinition",
    "StepCatalog",
    "StepDefinition",
    "step_from_unattached",
]
