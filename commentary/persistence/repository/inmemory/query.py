"""Evaluation of MongoDB-style filters, sorts and updates on plain dicts.

Covers the subset the in-memory repository needs: equality (including
array membership), dotted paths through subdocuments and arrays, ``$in``,
``$nin``, ``$ne``, ``$exists``, ``$gt``/``$gte``/``$lt``/``$lte``,
``$and``/``$or``.
"""

import operator
from typing import Any, Callable, Mapping, Optional, Sequence

from commentary.domain.error import StorageError
from commentary.domain.value import SortOrder

_MISSING = object()

_COMPARISONS: dict[str, Callable[[Any, Any], bool]] = {
    "$gt": operator.gt,
    "$gte": operator.ge,
    "$lt": operator.lt,
    "$lte": operator.le,
}


def resolve(value: Any, path: Sequence[str]) -> list[Any]:
    """Collect every value a dotted path reaches.

    Arrays fan out: ``replies.replyId`` yields the ``replyId`` of each
    reply. A terminal array yields itself and each of its elements, so
    equality against an array field means membership.
    """
    if not path:
        if isinstance(value, list):
            return [value, *value]
        return [value]

    head, rest = path[0], path[1:]
    if isinstance(value, Mapping):
        if head not in value:
            return []
        return resolve(value[head], rest)
    if isinstance(value, list):
        if head.isdigit():
            index = int(head)
            return resolve(value[index], rest) if index < len(value) else []
        return [found for item in value for found in resolve(item, path)]
    return []


def _is_operator_expression(condition: Any) -> bool:
    return (
        isinstance(condition, Mapping)
        and bool(condition)
        and all(str(key).startswith("$") for key in condition)
    )


def _equals(values: list[Any], expected: Any) -> bool:
    if expected is None and not values:
        return True
    return any(value == expected for value in values)


def _evaluate(values: list[Any], op: str, operand: Any) -> bool:
    if op == "$in":
        return any(_equals(values, candidate) for candidate in operand)
    if op == "$nin":
        return not any(_equals(values, candidate) for candidate in operand)
    if op == "$ne":
        return not _equals(values, operand)
    if op == "$exists":
        return bool(values) == bool(operand)
    if op in _COMPARISONS:
        compare = _COMPARISONS[op]
        return any(
            value is not None
            and not isinstance(value, list)
            and compare(value, operand)
            for value in values
        )
    raise StorageError(f"Unsupported query operator: {op}")


def matches(document: Mapping[str, Any], filter: Mapping[str, Any]) -> bool:
    """Check whether a document satisfies a filter."""
    for key, condition in filter.items():
        if key == "$and":
            if not all(matches(document, clause) for clause in condition):
                return False
            continue
        if key == "$or":
            if not any(matches(document, clause) for clause in condition):
                return False
            continue
        if key.startswith("$"):
            raise StorageError(f"Unsupported query operator: {key}")

        values = resolve(document, key.split("."))
        if _is_operator_expression(condition):
            if not all(
                _evaluate(values, op, operand) for op, operand in condition.items()
            ):
                return False
        elif not _equals(values, condition):
            return False
    return True


def _sort_key(document: Mapping[str, Any], field: str) -> tuple:
    # Missing and null values sort first, as in MongoDB
    values = resolve(document, field.split("."))
    value = values[0] if values else None
    return (value is not None, value)


def sort_documents(
    documents: list[Mapping[str, Any]],
    sort: Optional[Sequence[tuple[str, SortOrder]]],
) -> list[Mapping[str, Any]]:
    """Sort documents by one or more (field, direction) pairs."""
    ordered = list(documents)
    # Stable sorts applied from the least significant key
    for field, direction in reversed(list(sort or [])):
        ordered.sort(
            key=lambda document: _sort_key(document, field),
            reverse=direction == SortOrder.DESCENDING,
        )
    return ordered


def set_path(document: dict[str, Any], path: str, value: Any) -> None:
    """Assign a value at a dotted path, creating subdocuments as needed."""
    *parents, leaf = path.split(".")
    target: Any = document
    for part in parents:
        if isinstance(target, list):
            target = target[int(part)]
            continue
        child = target.get(part, _MISSING)
        if child is _MISSING or child is None:
            child = {}
            target[part] = child
        target = child
    if isinstance(target, list):
        target[int(leaf)] = value
    else:
        target[leaf] = value
