"""
Insight Template Engine
Evaluates template conditions against organization metrics and fills the
narrative text of the templates that fire.
"""

import logging
import operator
import re
from typing import Any, Callable, Dict, Mapping, Union

logger = logging.getLogger(__name__)

OPERATORS: Dict[str, Callable[[float, float], bool]] = {
    ">": operator.gt,
    "<": operator.lt,
    ">=": operator.ge,
    "<=": operator.le,
    "==": operator.eq,
    "!=": operator.ne,
}

PLACEHOLDER_PATTERN = re.compile(r"\{\{(\w+)\}\}")


def evaluate_condition(condition: Mapping[str, Any], metrics: Mapping[str, float]) -> bool:
    """
    Check a condition shaped {"metric": ..., "operator": ..., "threshold": ...}.

    A missing metric or threshold, or an unknown operator, never fires.
    """
    value = metrics.get(condition.get("metric"))
    threshold = condition.get("threshold")
    if value is None or threshold is None:
        return False

    compare = OPERATORS.get(condition.get("operator"))
    if compare is None:
        logger.warning(f"Unknown insight operator: {condition.get('operator')!r}")
        return False

    return compare(value, threshold)


def fill_narrative_template(template: str, variables: Mapping[str, Union[str, float]]) -> str:
    """Replace ``{{name}}`` placeholders; unknown names are left as written."""

    def _substitute(match: "re.Match[str]") -> str:
        key = match.group(1)
        return str(variables[key]) if key in variables else match.group(0)

    return PLACEHOLDER_PATTERN.sub(_substitute, template)
