import pytest

from arena_api.api.routes import build_route_table
from arena_api.core.routing import RouteGroup, RouteTable, join_prefix, parse_template, split_path


def _handler_a():
    return "a"


def _handler_b():
    return "b"


def test_parse_template_separates_captures_and_query_keys():
    segments, query_keys = parse_template("profile/{profileID}/members/list?statusID={statusID}&start={start}")

    assert [s.value for s in segments] == ["profile", "profileID", "members", "list"]
    assert [s.capture for s in segments] == [False, True, False, False]
    assert query_keys == ("statusID", "start")


def test_resolve_captures_path_segments():
    table = RouteTable()
    table.register("GET", "person/{id}/familymembers", _handler_a)

    match = table.resolve("get", "/person/42/familymembers")

    assert match is not None
    assert match.entry.handler is _handler_a
    assert match.captures == {"id": "42"}


def test_first_registered_route_wins_on_ambiguity():
    table = RouteTable()
    table.register("GET", "profile/list", _handler_a)
    table.register("GET", "profile/{profileID}", _handler_b)

    assert table.resolve("GET", "profile/list").entry.handler is _handler_a
    assert table.resolve("GET", "profile/12").entry.handler is _handler_b


@pytest.mark.parametrize(
    "method,path",
    [
        ("POST", "person/1"),
        ("GET", "person"),
        ("GET", "person/1/extra"),
        ("GET", "people/1"),
    ],
)
def test_resolve_returns_none_without_structural_match(method, path):
    table = RouteTable()
    table.register("GET", "person/{id}", _handler_a)

    assert table.resolve(method, path) is None


def test_query_string_in_template_is_not_used_for_matching():
    table = RouteTable()
    table.register("GET", "person/{id}?fields={fields}", _handler_a)

    assert table.resolve("GET", "person/5") is not None


def test_include_registers_group_under_prefix_in_order():
    group = RouteGroup()
    group.get("version", anonymous=True)(_handler_a)
    group.post("login")(_handler_b)

    table = RouteTable()
    table.include(group, "cust/rc")

    templates = [(e.method, e.template, e.anonymous) for e in table.entries]
    assert templates == [("GET", "cust/rc/version", True), ("POST", "cust/rc/login", False)]


@pytest.mark.parametrize(
    "prefix,template,expected",
    [
        ("cust/rc", "person/{id}", "cust/rc/person/{id}"),
        ("/cust/rc/", "/person/{id}", "cust/rc/person/{id}"),
        ("", "person/{id}", "person/{id}"),
    ],
)
def test_join_prefix(prefix, template, expected):
    assert join_prefix(prefix, template) == expected


def test_split_path_ignores_outer_slashes():
    assert split_path("/") == []
    assert split_path("/smgp/group/5/") == ["smgp", "group", "5"]


def test_route_table_serves_both_base_prefixes():
    table = build_route_table()

    custom = table.resolve("GET", "/cust/rc/person/7")
    legacy = table.resolve("GET", "/person/7")

    assert custom is not None and legacy is not None
    assert custom.entry.handler is legacy.entry.handler
    assert len(table) % 2 == 0


def test_literal_list_routes_precede_id_captures():
    table = build_route_table()

    assert table.resolve("GET", "cust/rc/profile/list").entry.handler.__name__ == "get_profile_list"
    assert table.resolve("GET", "cust/rc/smgp/cluster/list").entry.handler.__name__ == "get_clusters"
    assert table.resolve("GET", "cust/rc/smgp/category/list").entry.handler.__name__ == "get_categories"
