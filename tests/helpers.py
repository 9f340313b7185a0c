"""Builders for fake remote payloads."""
import inspect
import io
import json

import httpx
from openpyxl import Workbook

FAST_FEED_URL = "https://feed.test/gviz"
SHEET_URL = "https://sheet.test/export.xlsx"


def gviz_text(columns, rows, status="ok"):
    """Visualization-query response wrapped the way the feed serves it."""
    body = {
        "version": "0.6",
        "status": status,
        "table": {
            "cols": [{"id": chr(65 + i), "label": c, "type": "string"} for i, c in enumerate(columns)],
            "rows": [{"c": [None if v is None else {"v": v} for v in row]} for row in rows],
        },
    }
    return "/*O_o*/\ngoogle.visualization.Query.setResponse(" + json.dumps(body) + ");"


def gviz_from_records(records):
    columns = []
    for record in records:
        for key in record:
            if key not in columns:
                columns.append(key)
    rows = [[record.get(c) for c in columns] for record in records]
    return gviz_text(columns, rows)


def workbook_bytes(columns, rows):
    wb = Workbook()
    ws = wb.active
    ws.append(columns)
    for row in rows:
        ws.append(row)
    buf = io.BytesIO()
    wb.save(buf)
    return buf.getvalue()


def workbook_from_records(records):
    columns = []
    for record in records:
        for key in record:
            if key not in columns:
                columns.append(key)
    return workbook_bytes(columns, [[record.get(c) for c in columns] for record in records])


def mock_client(routes, calls=None):
    """AsyncClient whose responses come from `routes[url]`.

    A route value may be an httpx.Response, an exception instance to raise,
    or a callable(request) returning either.
    """

    async def handler(request):
        url = str(request.url)
        if calls is not None:
            calls.append(url)
        route = routes.get(url)
        if route is None:
            raise httpx.ConnectError("no route", request=request)
        if callable(route) and not isinstance(route, httpx.Response):
            route = route(request)
            if inspect.isawaitable(route):
                route = await route
        if isinstance(route, Exception):
            raise route
        return route

    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def text_route(text, status=200):
    return lambda request: httpx.Response(status, text=text)


def bytes_route(content, status=200):
    return lambda request: httpx.Response(status, content=content)
