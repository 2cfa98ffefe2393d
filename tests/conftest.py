"""
Shared test helpers for the card data refresh tests.

Provides a fake requests session so no test touches the network.
"""

import os
import sys

# The refresh scripts live in tools/ and import each other as top-level modules
_tools_dir = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), 'tools')
sys.path.insert(0, _tools_dir)

INVALID_JSON = object()


class FakeResponse:
    def __init__(self, status_code=200, payload=None):
        self.status_code = status_code
        self._payload = payload

    def json(self):
        if self._payload is INVALID_JSON:
            raise ValueError("Expecting value: line 1 column 1 (char 0)")
        return self._payload


class FakeSession:
    """Serves canned responses by URL. Unknown URLs answer 404.

    A route value may be a payload (served with 200), a FakeResponse, or an
    exception instance to raise from get().
    """

    def __init__(self, routes=None):
        self.routes = dict(routes or {})
        self.calls = []

    def get(self, url, headers=None, timeout=None):
        self.calls.append(url)
        route = self.routes.get(url)
        if isinstance(route, Exception):
            raise route
        if route is None:
            return FakeResponse(404, INVALID_JSON)
        if isinstance(route, FakeResponse):
            return route
        return FakeResponse(200, route)


def card(type_code, name, code='01001', **fields):
    """Build a raw card record the way the mirror files shape them."""
    record = {'type_code': type_code, 'name': name, 'code': code}
    record.update(fields)
    return record
