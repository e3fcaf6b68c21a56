#!/usr/bin/env python3
"""
Fake search API server for local development and testing.

Implements the endpoints the geosearch client talks to:
- Text search (POST /api/v1/search/text)
- Map search within bounds (POST /api/v1/search/map)
- Field suggestions (GET /api/v1/suggestions/{fieldType}?query=)
- User submissions for moderation (POST /api/v1/user-submissions)

Run with: python scripts/fake_search_api.py --port 3001
Then run: python -m geosearch.run --base-url http://127.0.0.1:3001/api/v1 text --city Middlesbrough

A business name of "__fail__" makes a search answer with a failure
envelope, for exercising error handling.
"""

import argparse
import json
import secrets
from http.server import BaseHTTPRequestHandler, HTTPServer
from typing import Any
from urllib.parse import parse_qs, unquote, urlparse

from geosearch.location import haversine_miles
from geosearch.models import Coordinates, MapBounds

API_PREFIX = "/api/v1"

FAIL_TRIGGER = "__fail__"

# Fake business directory
FAKE_BUSINESSES: list[dict[str, Any]] = [
    {
        "id": "biz-001",
        "name": "Carrot Cake Bakery",
        "sector": "Bakery",
        "location": {
            "country": "United Kingdom",
            "region": "North Yorkshire",
            "city": "Middlesbrough",
            "street": "Linthorpe Road",
            "postcode": "TS1 3LA",
            "coordinates": {"lat": 54.5720, "lng": -1.2370},
            "formattedAddress": "12 Linthorpe Road, Middlesbrough, TS1 3LA",
        },
        "rewardsPrograms": [
            {
                "id": "rw-1",
                "name": "Tenth Loaf Free",
                "description": "Buy nine loaves, get the tenth free",
                "active": True,
                "startDate": "2024-01-01T00:00:00Z",
            },
            {
                "id": "rw-2",
                "name": "Summer Stamps",
                "description": "Double stamps in August",
                "active": False,
                "startDate": "2023-08-01T00:00:00Z",
                "endDate": "2023-08-31T00:00:00Z",
            },
        ],
        "campaigns": [],
        "status": "active",
        "createdDate": "2023-05-10T09:30:00Z",
    },
    {
        "id": "biz-002",
        "name": "Acklam Coffee House",
        "sector": "Cafe",
        "location": {
            "country": "United Kingdom",
            "region": "North Yorkshire",
            "city": "Middlesbrough",
            "street": "Acklam Road",
            "postcode": "TS5 7AB",
            "coordinates": {"lat": 54.5480, "lng": -1.2600},
            "formattedAddress": "88 Acklam Road, Middlesbrough, TS5 7AB",
        },
        "rewardsPrograms": [
            {
                "id": "rw-3",
                "name": "Coffee Card",
                "description": "Every sixth coffee free",
                "active": True,
                "startDate": "2024-02-01T00:00:00Z",
            },
        ],
        "campaigns": [
            {
                "id": "cp-1",
                "name": "Breakfast Deal",
                "description": "Coffee and a pastry for a fiver",
                "active": True,
                "startDate": "2024-03-01T00:00:00Z",
                "endDate": "2030-03-31T00:00:00Z",
            },
            {
                "id": "cp-2",
                "name": "Loyalty Week",
                "description": "Bonus points all week",
                "active": True,
                "startDate": "2024-04-01T00:00:00Z",
                "endDate": "2030-04-07T00:00:00Z",
            },
        ],
        "status": "active",
    },
    {
        "id": "biz-003",
        "name": "Stockton Street Books",
        "sector": "Bookshop",
        "location": {
            "country": "United Kingdom",
            "region": "County Durham",
            "city": "Stockton-on-Tees",
            "street": "High Street",
            "postcode": "TS18 1SP",
            "coordinates": {"lat": 54.5650, "lng": -1.3180},
            "formattedAddress": "4 High Street, Stockton-on-Tees, TS18 1SP",
        },
        "rewardsPrograms": [],
        "campaigns": [],
        "status": "active",
    },
    {
        "id": "biz-004",
        "name": "Quayside Bakehouse",
        "sector": "Bakery",
        "location": {
            "country": "United Kingdom",
            "region": "Tyne and Wear",
            "city": "Newcastle upon Tyne",
            "street": "Quayside",
            "postcode": "NE1 3DX",
            "coordinates": {"lat": 54.9690, "lng": -1.6040},
            "formattedAddress": "21 Quayside, Newcastle upon Tyne, NE1 3DX",
        },
        "rewardsPrograms": [],
        "campaigns": [
            {
                "id": "cp-3",
                "name": "Grand Opening",
                "description": "Free cookie with any order",
                "active": True,
                "startDate": "2024-05-01T00:00:00Z",
            },
        ],
        "status": "active",
    },
]

# Fields that take suggestions, and where their value lives in a business record
SUGGESTION_SOURCES = {
    "businessName": lambda b: b["name"],
    "sector": lambda b: b["sector"],
    "country": lambda b: b["location"]["country"],
    "region": lambda b: b["location"]["region"],
    "city": lambda b: b["location"]["city"],
    "street": lambda b: b["location"]["street"],
}

# Submitted entries (in-memory), keyed by id
SUBMISSIONS: dict[str, dict[str, Any]] = {}


def _has_active(items: list[dict[str, Any]]) -> bool:
    return any(item.get("active", True) for item in items)


def _coords(business: dict[str, Any]) -> Coordinates:
    return Coordinates.from_dict(business["location"]["coordinates"])


def matches_criteria(business: dict[str, Any], criteria: dict[str, Any]) -> bool:
    """Apply the text filters of a search body to one business."""
    name = criteria.get("businessName")
    if name and name.casefold() not in business["name"].casefold():
        return False

    sector = criteria.get("sector")
    if sector and sector.casefold() != business["sector"].casefold():
        return False

    location = criteria.get("location") or {}
    for level in ("country", "region", "city", "street", "postcode"):
        wanted = location.get(level)
        if wanted and wanted.casefold() != business["location"][level].casefold():
            return False

    if criteria.get("rewardsOnly") and not _has_active(business["rewardsPrograms"]):
        return False
    if criteria.get("campaignsOnly") and not _has_active(business["campaigns"]):
        return False

    return True


def with_distance(business: dict[str, Any], origin: Coordinates | None) -> dict[str, Any]:
    """Copy of a business record, with distanceFromSearch when an origin is known."""
    record = dict(business)
    if origin is not None:
        record["distanceFromSearch"] = round(haversine_miles(origin, _coords(business)), 2)
    return record


class FakeSearchHandler(BaseHTTPRequestHandler):
    """HTTP handler implementing fake search API endpoints."""

    def log_message(self, format: str, *args) -> None:  # noqa: A002
        """Override to add prefix."""
        print(f"[FakeSearch] {args[0]}")

    def send_json(self, data: dict, status: int = 200) -> None:
        """Send a JSON response."""
        self.send_response(status)
        self.send_header("Content-Type", "application/json")
        self.end_headers()
        self.wfile.write(json.dumps(data).encode())

    def send_success(self, data: Any) -> None:
        self.send_json({"success": True, "data": data})

    def send_error_json(self, status: int, message: str) -> None:
        """Send a failure envelope."""
        self.send_json({"success": False, "error": message}, status=status)

    def read_body(self) -> dict[str, Any] | None:
        content_length = int(self.headers.get("Content-Length", 0))
        raw = self.rfile.read(content_length).decode() if content_length > 0 else ""
        try:
            body = json.loads(raw or "{}")
        except json.JSONDecodeError:
            self.send_error_json(400, "Invalid JSON body")
            return None
        if not isinstance(body, dict):
            self.send_error_json(400, "Request body must be an object")
            return None
        return body

    def do_POST(self) -> None:
        """Handle POST requests."""
        path = urlparse(self.path).path

        body = self.read_body()
        if body is None:
            return

        if path == f"{API_PREFIX}/search/text":
            self.handle_text_search(body)
        elif path == f"{API_PREFIX}/search/map":
            self.handle_map_search(body)
        elif path == f"{API_PREFIX}/user-submissions":
            self.handle_submission(body)
        else:
            self.send_error_json(404, f"Unknown endpoint: {path}")

    def do_GET(self) -> None:
        """Handle GET requests."""
        parsed = urlparse(self.path)
        path = parsed.path
        query_params = parse_qs(parsed.query)

        # Suggestions: /suggestions/{fieldType}
        if path.startswith(f"{API_PREFIX}/suggestions/"):
            field_type = unquote(path.split("/")[-1])
            self.handle_suggestions(field_type, query_params)
        else:
            self.send_error_json(404, f"Unknown endpoint: {path}")

    def handle_text_search(self, body: dict[str, Any]) -> None:
        """Filter the directory and return one page."""
        if body.get("businessName") == FAIL_TRIGGER:
            self.send_error_json(500, "Search backend unavailable")
            return

        page = int(body.get("page", 1))
        page_size = int(body.get("pageSize", 20))
        if page < 1 or page_size < 1:
            self.send_error_json(400, "page and pageSize must be positive")
            return

        coords = (body.get("location") or {}).get("coordinates")
        origin = Coordinates.from_dict(coords) if coords else None

        matches = [
            with_distance(b, origin) for b in FAKE_BUSINESSES if matches_criteria(b, body)
        ]
        if origin is not None:
            distance = body.get("distance")
            if distance is not None:
                matches = [b for b in matches if b["distanceFromSearch"] <= distance]
            matches.sort(key=lambda b: b["distanceFromSearch"])
        elif body.get("sortBy") == "name":
            matches.sort(key=lambda b: b["name"])

        start = (page - 1) * page_size
        self.send_success(
            {
                "results": matches[start : start + page_size],
                "totalCount": len(matches),
                "page": page,
                "hasMore": start + page_size < len(matches),
            }
        )

    def handle_map_search(self, body: dict[str, Any]) -> None:
        """Return businesses inside the bounds, nearest to the centre first."""
        if body.get("businessName") == FAIL_TRIGGER:
            self.send_error_json(500, "Map backend unavailable")
            return

        try:
            bounds = MapBounds.from_dict(body["bounds"])
        except (KeyError, TypeError, ValueError) as e:
            self.send_error_json(400, f"Invalid bounds: {e}")
            return

        center = Coordinates(
            lat=(bounds.northeast.lat + bounds.southwest.lat) / 2,
            lng=(bounds.northeast.lng + bounds.southwest.lng) / 2,
        )
        matches = [
            with_distance(b, center)
            for b in FAKE_BUSINESSES
            if bounds.contains(_coords(b)) and matches_criteria(b, body)
        ]
        matches.sort(key=lambda b: b["distanceFromSearch"])

        self.send_success({"results": matches, "totalCount": len(matches)})

    def handle_suggestions(self, field_type: str, params: dict) -> None:
        """Verified values from the directory, then pending submissions."""
        source = SUGGESTION_SOURCES.get(field_type)
        if source is None:
            self.send_error_json(400, f"Unsupported field type: {field_type}")
            return

        query = params.get("query", [""])[0].strip()
        if len(query) < 2:
            self.send_error_json(400, "Query must be at least 2 characters")
            return

        needle = query.casefold()
        suggestions = []
        seen = set()

        for business in FAKE_BUSINESSES:
            value = source(business)
            if needle not in value.casefold() or value.casefold() in seen:
                continue
            seen.add(value.casefold())
            suggestion: dict[str, Any] = {"value": value, "label": value, "type": "verified"}
            if field_type == "businessName":
                suggestion["metadata"] = {
                    "businessId": business["id"],
                    "sector": business["sector"],
                    "city": business["location"]["city"],
                }
            elif field_type == "sector":
                count = sum(1 for b in FAKE_BUSINESSES if b["sector"] == value)
                suggestion["metadata"] = {"businessCount": count}
            elif field_type == "city":
                suggestion["metadata"] = {"parent": business["location"]["region"]}
            suggestions.append(suggestion)

        for entry in SUBMISSIONS.values():
            value = entry["enteredValue"]
            if entry["fieldType"] != field_type or needle not in value.casefold():
                continue
            if value.casefold() in seen:
                continue
            seen.add(value.casefold())
            suggestions.append(
                {"value": value, "label": f"{value} (pending)", "type": "userSubmitted"}
            )

        self.send_success({"suggestions": suggestions})

    def handle_submission(self, body: dict[str, Any]) -> None:
        """Queue a user-entered value for moderation."""
        required = ("fieldType", "enteredValue", "userId", "sessionId")
        missing = [key for key in required if not body.get(key)]
        if missing:
            self.send_error_json(400, f"Missing fields: {', '.join(missing)}")
            return

        submission_id = f"sub-{secrets.token_hex(4)}"
        SUBMISSIONS[submission_id] = {
            "id": submission_id,
            "fieldType": body["fieldType"],
            "enteredValue": body["enteredValue"].strip(),
            "context": body.get("context") or {},
            "userId": body["userId"],
            "sessionId": body["sessionId"],
            "status": "pending",
        }

        self.send_success(
            {
                "id": submission_id,
                "status": "pending",
                "message": "Thanks! Your entry has been sent for review.",
            }
        )


def create_server(host: str = "127.0.0.1", port: int = 3001) -> HTTPServer:
    """Create (but do not start) a fake search API server."""
    return HTTPServer((host, port), FakeSearchHandler)


def main() -> None:
    parser = argparse.ArgumentParser(description="Run fake search API server")
    parser.add_argument(
        "--port",
        type=int,
        default=3001,
        help="Port to listen on (default: 3001)",
    )
    parser.add_argument(
        "--host",
        type=str,
        default="127.0.0.1",
        help="Host to bind to (default: 127.0.0.1)",
    )
    args = parser.parse_args()

    server = create_server(args.host, args.port)
    print(f"Fake search API running at http://{args.host}:{args.port}{API_PREFIX}")
    print("Businesses:")
    for business in FAKE_BUSINESSES:
        print(f"  {business['name']} ({business['sector']}), {business['location']['city']}")
    print()

    try:
        server.serve_forever()
    except KeyboardInterrupt:
        print("\nShutting down...")
        server.shutdown()


if __name__ == "__main__":
    main()
