"""
Composable aggregation stages over order documents.

A document is the nested camelCase dict produced by ``OrderRead.to_document``.
Stages are plain callables taking and returning an iterable of documents, so a
pipeline is just a list of stages applied in order:

    run_pipeline(documents, [
        Match(ne("status", "cancelled")),
        Group("status", total=Sum("orderSummary.totalPrice")),
        Sort("total", descending=True),
        Limit(5),
    ])

Any backend able to yield documents can run the same pipelines.
"""
from typing import Any, Callable, Dict, Iterable, List, Optional, Union

Document = Dict[str, Any]
Predicate = Callable[[Document], bool]
KeySpec = Union[None, str, Callable[[Document], Any]]


def get_path(doc: Document, path: str) -> Any:
    value: Any = doc
    for part in path.split("."):
        if not isinstance(value, dict):
            return None
        value = value.get(part)
    return value


def _resolve(spec: KeySpec, doc: Document) -> Any:
    if spec is None:
        return None
    if callable(spec):
        return spec(doc)
    return get_path(doc, spec)


# -------------------------
# PREDICATES
# -------------------------

def eq(path: str, value: Any) -> Predicate:
    return lambda doc: get_path(doc, path) == value


def ne(path: str, value: Any) -> Predicate:
    return lambda doc: get_path(doc, path) != value


def gte(path: str, value: Any) -> Predicate:
    def check(doc: Document) -> bool:
        current = get_path(doc, path)
        return current is not None and current >= value
    return check


def all_of(*predicates: Predicate) -> Predicate:
    return lambda doc: all(p(doc) for p in predicates)


# -------------------------
# ACCUMULATORS
# -------------------------

class Sum:
    """Sums a path (or callable) per group; ``Sum(1)`` counts documents."""

    def __init__(self, spec: Union[int, float, KeySpec]):
        self.spec = spec

    def start(self):
        return 0

    def step(self, acc, doc: Document):
        if isinstance(self.spec, (int, float)):
            return acc + self.spec
        value = _resolve(self.spec, doc)
        return acc + value if isinstance(value, (int, float)) else acc

    def finish(self, acc):
        return acc


class Avg:
    def __init__(self, spec: KeySpec):
        self.spec = spec

    def start(self):
        return [0, 0]

    def step(self, acc, doc: Document):
        value = _resolve(self.spec, doc)
        if isinstance(value, (int, float)):
            acc[0] += value
            acc[1] += 1
        return acc

    def finish(self, acc):
        total, count = acc
        return total / count if count else None


def Count() -> Sum:
    return Sum(1)


# -------------------------
# STAGES
# -------------------------

class Match:
    def __init__(self, predicate: Predicate):
        self.predicate = predicate

    def __call__(self, docs: Iterable[Document]) -> Iterable[Document]:
        return (doc for doc in docs if self.predicate(doc))


class Unwind:
    """Emits one document per element of the array at a top-level ``path``."""

    def __init__(self, path: str):
        self.path = path

    def __call__(self, docs: Iterable[Document]) -> Iterable[Document]:
        for doc in docs:
            for element in doc.get(self.path) or []:
                yield {**doc, self.path: element}


class Group:
    """
    Groups documents by ``key`` and folds each group with the accumulators.

    Output documents carry the group key under ``_id`` followed by one field
    per accumulator. Groups are emitted in first-seen order.
    """

    def __init__(self, key: KeySpec, **accumulators):
        self.key = key
        self.accumulators = accumulators

    def __call__(self, docs: Iterable[Document]) -> Iterable[Document]:
        groups: Dict[Any, Dict[str, Any]] = {}
        for doc in docs:
            group_key = _resolve(self.key, doc)
            state = groups.get(group_key)
            if state is None:
                state = {name: acc.start() for name, acc in self.accumulators.items()}
                groups[group_key] = state
            for name, acc in self.accumulators.items():
                state[name] = acc.step(state[name], doc)

        for group_key, state in groups.items():
            out = {"_id": group_key}
            for name, acc in self.accumulators.items():
                out[name] = acc.finish(state[name])
            yield out


class Sort:
    """Stable sort; documents missing the key sort first ascending."""

    def __init__(self, key: KeySpec, descending: bool = False):
        self.key = key
        self.descending = descending

    def __call__(self, docs: Iterable[Document]) -> Iterable[Document]:
        def sort_key(doc):
            value = _resolve(self.key, doc)
            return (value is not None, value)

        return sorted(docs, key=sort_key, reverse=self.descending)


class Limit:
    def __init__(self, count: int):
        self.count = count

    def __call__(self, docs: Iterable[Document]) -> Iterable[Document]:
        for index, doc in enumerate(docs):
            if index >= self.count:
                return
            yield doc


class Project:
    def __init__(self, fn: Callable[[Document], Document]):
        self.fn = fn

    def __call__(self, docs: Iterable[Document]) -> Iterable[Document]:
        return (self.fn(doc) for doc in docs)


def run_pipeline(docs: Iterable[Document], stages: List[Callable]) -> List[Document]:
    for stage in stages:
        docs = stage(docs)
    return list(docs)


def first_value(results: List[Document], field: str, default: Optional[float] = 0):
    """Value of ``field`` on a single-group result, ``default`` when empty."""
    if not results or results[0].get(field) is None:
        return default
    return results[0][field]
