from __future__ import annotations

import shlex
from dataclasses import dataclass, field
from typing import Any, ClassVar, Union

from session_common import DEFAULT_SETTLE_DELAY_MS, ValidationError


@dataclass(frozen=True)
class BaseAction:
    selector: str | None = None
    options: dict[str, Any] = field(default_factory=dict)

    name: ClassVar[str] = ""

    @property
    def type_name(self) -> str:
        """Tag as the caller wrote it; echoed back on failure."""
        return self.name

    @property
    def settle_delay_ms(self) -> int:
        raw = self.options.get("delay")
        if raw is None:
            return DEFAULT_SETTLE_DELAY_MS
        try:
            return max(0, int(raw))
        except (TypeError, ValueError, OverflowError):
            return DEFAULT_SETTLE_DELAY_MS


@dataclass(frozen=True)
class ClickAction(BaseAction):
    name: ClassVar[str] = "click"


@dataclass(frozen=True)
class FillAction(BaseAction):
    value: Any = None
    alias: str = "fill"

    name: ClassVar[str] = "fill"

    @property
    def type_name(self) -> str:
        return self.alias


@dataclass(frozen=True)
class SelectAction(BaseAction):
    value: Any = None

    name: ClassVar[str] = "select"


@dataclass(frozen=True)
class CheckAction(BaseAction):
    name: ClassVar[str] = "check"


@dataclass(frozen=True)
class UncheckAction(BaseAction):
    name: ClassVar[str] = "uncheck"


@dataclass(frozen=True)
class HoverAction(BaseAction):
    name: ClassVar[str] = "hover"


@dataclass(frozen=True)
class ScrollAction(BaseAction):
    name: ClassVar[str] = "scroll"


@dataclass(frozen=True)
class WaitAction(BaseAction):
    value: Any = None

    name: ClassVar[str] = "wait"


@dataclass(frozen=True)
class GetTextAction(BaseAction):
    name: ClassVar[str] = "getText"


@dataclass(frozen=True)
class GetAttributeAction(BaseAction):
    attribute: str | None = None

    name: ClassVar[str] = "getAttribute"


@dataclass(frozen=True)
class EvaluateAction(BaseAction):
    expression: str | None = None

    name: ClassVar[str] = "evaluate"


@dataclass(frozen=True)
class PressAction(BaseAction):
    key: str | None = None

    name: ClassVar[str] = "press"


@dataclass(frozen=True)
class UnknownAction(BaseAction):
    raw_type: Any = None

    @property
    def type_name(self) -> Any:
        return self.raw_type


Action = Union[
    ClickAction,
    FillAction,
    SelectAction,
    CheckAction,
    UncheckAction,
    HoverAction,
    ScrollAction,
    WaitAction,
    GetTextAction,
    GetAttributeAction,
    EvaluateAction,
    PressAction,
    UnknownAction,
]

RECOGNIZED_TYPES = (
    "click",
    "fill",
    "type",
    "select",
    "check",
    "uncheck",
    "hover",
    "scroll",
    "wait",
    "getText",
    "getAttribute",
    "evaluate",
    "press",
)


def _optional_str(value: Any) -> str | None:
    if value is None:
        return None
    return str(value)


def parse_action(raw: Any, *, index: int | None = None) -> Action:
    where = f"actions[{index}]" if index is not None else "action"
    if not isinstance(raw, dict):
        raise ValidationError(f"{where} must be an object")

    action_type = raw.get("type")
    selector = raw.get("selector")
    value = raw.get("value")
    options = raw.get("options")

    if selector is not None and not isinstance(selector, str):
        raise ValidationError(f"{where}.selector must be a string")
    if options is None:
        options = {}
    if not isinstance(options, dict):
        raise ValidationError(f"{where}.options must be an object")
    options = dict(options)

    if action_type == "click":
        return ClickAction(selector=selector, options=options)
    if action_type in {"fill", "type"}:
        return FillAction(selector=selector, options=options, value=value, alias=action_type)
    if action_type == "select":
        return SelectAction(selector=selector, options=options, value=value)
    if action_type == "check":
        return CheckAction(selector=selector, options=options)
    if action_type == "uncheck":
        return UncheckAction(selector=selector, options=options)
    if action_type == "hover":
        return HoverAction(selector=selector, options=options)
    if action_type == "scroll":
        return ScrollAction(selector=selector, options=options)
    if action_type == "wait":
        return WaitAction(selector=selector, options=options, value=value)
    if action_type == "getText":
        return GetTextAction(selector=selector, options=options)
    if action_type == "getAttribute":
        return GetAttributeAction(selector=selector, options=options, attribute=_optional_str(value))
    if action_type == "evaluate":
        return EvaluateAction(selector=selector, options=options, expression=_optional_str(value))
    if action_type == "press":
        return PressAction(selector=selector, options=options, key=_optional_str(value))

    return UnknownAction(selector=selector, options=options, raw_type=action_type)


def parse_actions(raw: Any) -> list[Action]:
    if not isinstance(raw, list):
        raise ValidationError("actions must be an array")
    return [parse_action(item, index=idx) for idx, item in enumerate(raw)]


def _action_value(action: Action) -> Any:
    if isinstance(action, (FillAction, SelectAction, WaitAction)):
        return action.value
    if isinstance(action, GetAttributeAction):
        return action.attribute
    if isinstance(action, EvaluateAction):
        return action.expression
    if isinstance(action, PressAction):
        return action.key
    return None


def render_action_line(action: Action) -> str:
    parts = [str(action.type_name)]
    if action.selector is not None:
        parts.append(shlex.quote(action.selector))
    value = _action_value(action)
    if value is not None:
        text = str(value)
        if len(text) > 60:
            text = text[:57] + "..."
        parts.append(shlex.quote(text))
    return " ".join(parts)
