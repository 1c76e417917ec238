from typing import Dict, Iterable, List, Mapping


class QueryParams:
    """Read-only view over the decoded form fields of a query API request.

    Absent fields read as the empty string, so "missing" and "empty" are the
    same thing everywhere in the handlers.

    Repeated fields are addressed as ``<Prefix>.member.<N>`` with ``N``
    starting at 1. Collections are read by probing 1, 2, 3... and stop at
    the first empty probe: ``Prefix.member.1`` and ``Prefix.member.3``
    without ``Prefix.member.2`` yields a single member. A collection can
    never be longer than the number of fields in the request.
    """

    def __init__(self, values: Mapping[str, str]):
        self._values = values

    def get(self, key: str) -> str:
        return self._values.get(key) or ""

    def has(self, key: str) -> bool:
        return self.get(key) != ""

    def members(self, prefix: str) -> List[str]:
        """Scalar members, e.g. ``members("Subnets")`` -> ``Subnets.member.N``."""
        result = []
        index = 1
        while index <= len(self._values):
            value = self.get(member_key(prefix, index))
            if not value:
                break
            result.append(value)
            index += 1
        return result

    def member_records(self, prefix: str, key_field: str, fields: Iterable[str] = ()) -> List[Dict[str, str]]:
        """Structured members, probing on ``<Prefix>.member.<N>.<key_field>``.

        Each record maps the key field and every name in ``fields`` to its
        value (empty when absent).
        """
        fields = list(fields)
        records = []
        index = 1
        while index <= len(self._values):
            base = member_key(prefix, index)
            if not self.get(f"{base}.{key_field}"):
                break
            record = {key_field: self.get(f"{base}.{key_field}")}
            for field in fields:
                record[field] = self.get(f"{base}.{field}")
            records.append(record)
            index += 1
        return records


def member_key(prefix: str, index: int) -> str:
    return f"{prefix}.member.{index}"
