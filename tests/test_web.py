from gost.registry import TaskRegistry
from gost.web import create_app


def _make_client(occupied=0, capacity=2):
    registry = TaskRegistry(capacity)
    for _ in range(occupied):
        registry.occupy()
    return registry, create_app(registry).test_client()


def test_status_is_unhealthy_before_any_listener_registers():
    _registry, client = _make_client(occupied=0)

    response = client.get("/status/")
    assert response.status_code == 404
    assert response.get_data(as_text=True) == "Unhealthy"


def test_status_is_unhealthy_with_one_of_two_listeners():
    _registry, client = _make_client(occupied=1)

    response = client.get("/status/")
    assert response.status_code == 404
    assert response.get_data(as_text=True) == "Unhealthy"


def test_status_is_healthy_when_saturated_and_repeatable():
    _registry, client = _make_client(occupied=2)

    for _ in range(3):
        response = client.get("/status/")
        assert response.status_code == 200
        assert response.get_data(as_text=True) == "Healthy"


def test_status_matches_any_path_and_method_under_prefix():
    _registry, client = _make_client(occupied=2)

    response = client.post("/status/deep/check")
    assert response.status_code == 200
    assert response.get_data(as_text=True) == "Healthy"


def test_status_follows_registry_changes():
    registry, client = _make_client(occupied=2)
    assert client.get("/status/").status_code == 200

    registry.release()
    response = client.get("/status/")
    assert response.status_code == 404
    assert response.get_data(as_text=True) == "Unhealthy"


def test_status_without_trailing_slash_redirects():
    _registry, client = _make_client(occupied=2)

    response = client.get("/status")
    assert response.status_code in (301, 308)
    assert response.headers["Location"].endswith("/status/")


def test_down_route_accepts_get_only():
    _registry, client = _make_client()

    response = client.get("/down")
    assert response.status_code == 200
    assert response.get_data(as_text=True) == "Download Test"

    response = client.post("/down")
    assert response.status_code == 405
    assert response.get_data(as_text=True) == "Method Not Allowed"

    response = client.put("/down")
    assert response.status_code == 405

    response = client.head("/down")
    assert response.status_code == 405


def test_up_route_accepts_put_only():
    _registry, client = _make_client()

    response = client.put("/up", data=b"payload")
    assert response.status_code == 200
    assert response.get_data(as_text=True) == "Upload Test"

    response = client.get("/up")
    assert response.status_code == 405
    assert response.get_data(as_text=True) == "Method Not Allowed"

    for method in ("HEAD", "POST", "DELETE"):
        response = client.open("/up", method=method)
        assert response.status_code == 405


def test_root_is_empty_and_other_paths_are_not_found():
    _registry, client = _make_client()

    response = client.get("/")
    assert response.status_code == 200
    assert response.get_data(as_text=True) == ""

    response = client.delete("/")
    assert response.status_code == 200

    for path in ("/nonexistent", "/down/extra", "/a/b/c"):
        response = client.get(path)
        assert response.status_code == 404
        assert response.get_data(as_text=True) == "Not Found"


def test_responses_are_plain_text():
    _registry, client = _make_client(occupied=2)

    for path in ("/", "/down", "/status/", "/missing"):
        response = client.get(path)
        assert response.mimetype == "text/plain"


def test_each_request_is_logged(caplog):
    _registry, client = _make_client()

    with caplog.at_level("INFO", logger="gost.web"):
        client.get("/down?size=1")

    assert any("GET /down?size=1 from 127.0.0.1" in message for message in caplog.messages)


def test_create_app_names_flask_after_an_importable_module():
    app = create_app(TaskRegistry(1))
    assert app.import_name == "gost.web"
    assert app.root_path


def test_unlisted_methods_are_routed_by_path():
    _registry, client = _make_client(occupied=2)

    response = client.open("/", method="TRACE")
    assert response.status_code == 200
    assert response.get_data(as_text=True) == ""

    response = client.open("/status/", method="PROPFIND")
    assert response.status_code == 200
    assert response.get_data(as_text=True) == "Healthy"

    response = client.open("/status/deep", method="PROPFIND")
    assert response.status_code == 200

    response = client.open("/nonexistent", method="PROPFIND")
    assert response.status_code == 404
    assert response.get_data(as_text=True) == "Not Found"

    for path in ("/down", "/up"):
        response = client.open(path, method="TRACE")
        assert response.status_code == 405
        assert response.get_data(as_text=True) == "Method Not Allowed"


def test_unlisted_method_on_status_reports_unhealthy_when_not_saturated():
    _registry, client = _make_client(occupied=1)

    response = client.open("/status/", method="PROPFIND")
    assert response.status_code == 404
    assert response.get_data(as_text=True) == "Unhealthy"
