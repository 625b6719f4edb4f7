"""
HTTP tests for the ColorKit API running against a temporary SQLite store.
"""

from colorkit.engine.identity import encode_event_id

CAL = "jane@example.com"


def test_health_needs_no_auth(api):
    response = api.get("/health", headers={"X-Backend-Token": "", "X-User-Email": ""})
    assert response.status_code == 200
    assert response.json() == {"ok": True}


def test_requests_without_token_are_rejected(api):
    response = api.get("/v1/settings", headers={"X-Backend-Token": "wrong"})
    assert response.status_code == 401


def test_allowed_emails_restricts_users(api, monkeypatch):
    from colorkit import settings as app_settings

    monkeypatch.setenv("ALLOWED_EMAILS", "someone@else.com")
    app_settings.reset_settings_cache()
    assert api.get("/v1/settings").status_code == 403


def test_read_settings_returns_defaults(api):
    response = api.get("/v1/settings")
    assert response.status_code == 200
    body = response.json()
    assert body["enabled"] is True
    assert body["timeBlocking"]["shadingStyle"] == "solid"


def test_monday_example_over_http(api):
    response = api.put("/v1/settings/weekday/1", json={"color": "#2196F3", "opacity": 30})
    assert response.status_code == 200
    response = api.put("/v1/settings/dates/2025-06-02", json={"color": "#ff0000", "opacity": 50})
    assert response.status_code == 200

    override = api.get("/v1/resolve/day/2025-06-02").json()
    assert override["date"] == "2025-06-02"
    assert override["color"] == "#ff0000"
    assert override["opacityPercent"] == 50
    assert override["source"] == "date"

    weekday = api.get("/v1/resolve/day/2025-06-09").json()
    assert weekday["color"] == "#2196f3"
    assert weekday["opacityPercent"] == 30
    assert weekday["source"] == "weekday"


def test_clear_date_override(api):
    api.put("/v1/settings/dates/2025-06-02", json={"color": "#ff0000", "label": "Launch"})
    body = api.delete("/v1/settings/dates/2025-06-02").json()
    assert body["dateColors"] == {}
    assert body["dateColorLabels"] == {}


def test_bad_date_and_weekday_are_400(api):
    assert api.put("/v1/settings/dates/2025-02-30", json={"color": "#ff0000"}).status_code == 400
    assert api.put("/v1/settings/weekday/9", json={"color": "#ff0000"}).status_code == 400
    assert api.put("/v1/settings/weekday/1", json={}).status_code == 400
    assert api.put("/v1/settings/weekday/1", json={"color": "blue"}).status_code == 400
    assert api.get("/v1/resolve/day/yesterday").status_code == 400


def test_disabling_day_coloring_gives_neutral(api, monkeypatch):
    from colorkit import settings as app_settings

    monkeypatch.setenv("NEUTRAL_DAY_COLOR", "#EEEEEE")
    monkeypatch.setenv("NEUTRAL_DAY_OPACITY", "15")
    app_settings.reset_settings_cache()
    api.put("/v1/settings/enabled", json={"enabled": False})
    body = api.get("/v1/resolve/day/2025-06-02").json()
    assert body["source"] == "neutral"
    assert body["color"] == "#eeeeee"
    assert body["opacityPercent"] == 15


def test_event_color_with_calendar_default(api):
    event_id = encode_event_id("standup", CAL)
    api.put(f"/v1/event-colors/calendars/{CAL}", json={"field": "text", "value": "#ffffff"})
    response = api.put("/v1/event-colors/events", json={"event_id": event_id, "background": "#FF0000"})
    assert response.status_code == 200

    body = api.get("/v1/resolve/event", params={"event_id": event_id, "calendar_id": CAL}).json()
    assert body["event_id"] == event_id
    assert body["colors"]["background"] == "#ff0000"
    assert body["colors"]["text"] == "#ffffff"
    assert body["colors"]["borderWidth"] == 2


def test_series_color_covers_every_instance(api):
    first = encode_event_id("weekly_20250602", CAL)
    second = encode_event_id("weekly_20250609", CAL)
    api.put("/v1/event-colors/events", json={"event_id": first, "background": "#00ff00", "applyToAll": True})

    body = api.post(
        "/v1/resolve/events",
        json={"events": [{"event_id": first, "calendar_id": CAL}, {"event_id": second, "calendar_id": CAL}]},
    ).json()
    assert [item["colors"]["background"] for item in body["items"]] == ["#00ff00", "#00ff00"]

    api.request("DELETE", "/v1/event-colors/events", json={"event_id": second, "applyToAll": True})
    body = api.get("/v1/resolve/event", params={"event_id": second}).json()
    assert body["colors"] is None


def test_google_colors_opt_out(api):
    event_id = encode_event_id("native", CAL)
    api.put(f"/v1/event-colors/calendars/{CAL}", json={"field": "background", "value": "#123456"})
    api.put("/v1/event-colors/events", json={"event_id": event_id, "useGoogleColors": True})
    body = api.get("/v1/resolve/event", params={"event_id": event_id, "calendar_id": CAL}).json()
    assert body["colors"] is None


def test_unknown_calendar_field_is_400(api):
    response = api.put(f"/v1/event-colors/calendars/{CAL}", json={"field": "glow", "value": "#ffffff"})
    assert response.status_code == 400
    assert api.delete(f"/v1/event-colors/calendars/{CAL}", params={"field": "glow"}).status_code == 400


def test_categories_templates_and_labels(api):
    api.put(
        "/v1/event-colors/categories",
        json={"id": "work", "name": "Work", "order": 1, "colors": [{"hex": "#aa0000", "label": "Meetings"}]},
    )
    api.put("/v1/event-colors/templates", json={"id": "t1", "name": "Focus", "categoryId": "work", "order": 2})
    api.put("/v1/event-colors/templates", json={"id": "t2", "name": "Review", "categoryId": "work", "order": 1})
    api.put("/v1/event-colors/google-labels", json={"color": "#7986CB", "label": "Lavender"})

    templates = api.get("/v1/event-colors/templates", params={"category_id": "work"}).json()["items"]
    assert [item["id"] for item in templates] == ["t2", "t1"]

    api.post("/v1/event-colors/templates/reorder", json={"items": [{"id": "t1", "order": 0}]})
    templates = api.get("/v1/event-colors/templates", params={"category_id": "work"}).json()["items"]
    assert [item["id"] for item in templates] == ["t1", "t2"]

    response = api.put("/v1/event-colors/templates/t2/category", json={"categoryId": None})
    assert response.status_code == 200
    assert api.put("/v1/event-colors/templates/nope/category", json={"categoryId": "work"}).status_code == 404

    labelled = encode_event_id("sync", CAL)
    api.put("/v1/event-colors/events", json={"event_id": labelled, "background": "#aa0000"})
    body = api.get("/v1/resolve/event", params={"event_id": labelled}).json()
    assert body["colors"]["label"] == "Meetings"

    google = encode_event_id("lav", CAL)
    api.put("/v1/event-colors/events", json={"event_id": google, "background": "#7986cb"})
    assert api.get("/v1/resolve/event", params={"event_id": google}).json()["colors"]["label"] == "Lavender"

    body = api.delete("/v1/event-colors/templates/t1").json()
    assert "t1" not in body["eventColoring"]["templates"]
    body = api.delete("/v1/event-colors/categories/work").json()
    assert "work" not in body["eventColoring"]["categories"]
    assert api.delete("/v1/event-colors/categories/default").status_code == 400


def test_quick_access_and_disable_event_coloring(api):
    body = api.post("/v1/event-colors/quick-access", json={"color": "#abcdef"}).json()
    assert body["eventColoring"]["quickAccessColors"] == ["#abcdef"]
    assert api.post("/v1/event-colors/quick-access", json={"color": "nope"}).status_code == 400

    event_id = encode_event_id("muted", CAL)
    api.put("/v1/event-colors/events", json={"event_id": event_id, "background": "#ff0000"})
    api.put("/v1/event-colors/enabled", json={"enabled": False})
    assert api.get("/v1/resolve/event", params={"event_id": event_id}).json()["colors"] is None


def test_time_blocking_over_http(api):
    first = api.post("/v1/time-blocking/weekly/mon", json={"timeRange": ["09:00", "12:00"], "label": "Deep work"})
    assert first.status_code == 200
    first_id = first.json()["block"]["id"]
    api.post("/v1/time-blocking/weekly/mon", json={"timeRange": ["11:00", "13:00"], "label": "Overlap"})
    api.post("/v1/time-blocking/dates/2025-06-02", json={"timeRange": ["00:00", "23:59"], "style": "hashed"})

    blocks = api.get("/v1/resolve/time-blocks/2025-06-02").json()["blocks"]
    assert [block["label"] for block in blocks] == ["Deep work", "Overlap", ""]
    assert blocks[2]["allDay"] is True
    assert blocks[0]["color"] == "#ffeb3b"

    updated = api.put(
        f"/v1/time-blocking/weekly/mon/{first_id}", json={"timeRange": ["08:00", "09:00"], "label": "Early"}
    )
    assert updated.json()["block"]["label"] == "Early"

    assert api.delete(f"/v1/time-blocking/weekly/mon/{first_id}").json()["ok"] is True
    assert api.delete(f"/v1/time-blocking/weekly/mon/{first_id}").status_code == 404


def test_invalid_time_range_is_reported_inline(api):
    response = api.post("/v1/time-blocking/weekly/tue", json={"timeRange": ["17:00", "09:00"]})
    assert response.status_code == 200
    body = response.json()
    assert body["ok"] is False
    assert body["error"] == "invalid_time_range"
    assert body["settings"]["timeBlocking"]["weeklySchedule"]["tue"] == []


def test_time_blocking_patch_and_bad_keys(api):
    body = api.put("/v1/time-blocking", json={"globalColor": "#00FF00", "shadingStyle": "hashed"}).json()
    assert body["timeBlocking"]["globalColor"] == "#00ff00"
    assert body["timeBlocking"]["shadingStyle"] == "hashed"
    assert api.put("/v1/time-blocking", json={"shadingStyle": "dotted"}).status_code == 400
    assert api.put("/v1/time-blocking", json={}).status_code == 400
    assert api.post("/v1/time-blocking/weekly/funday", json={"timeRange": ["09:00", "10:00"]}).status_code == 400
    assert api.post("/v1/time-blocking/dates/2025-6-2", json={"timeRange": ["09:00", "10:00"]}).status_code == 400


def test_date_specific_blocks_over_http(api):
    created = api.post("/v1/time-blocking/dates/2025-06-03", json={"timeRange": ["14:00", "15:00"]}).json()
    block_id = created["block"]["id"]
    api.put(f"/v1/time-blocking/dates/2025-06-03/{block_id}", json={"timeRange": ["15:00", "16:00"]})
    removed = api.delete(f"/v1/time-blocking/dates/2025-06-03/{block_id}").json()
    assert removed["settings"]["timeBlocking"]["dateSpecificSchedule"] == {}

    api.post("/v1/time-blocking/dates/2025-06-03", json={"timeRange": ["14:00", "15:00"]})
    body = api.delete("/v1/time-blocking/dates/2025-06-03").json()
    assert body["timeBlocking"]["dateSpecificSchedule"] == {}


def test_reset_settings(api):
    api.put("/v1/settings/enabled", json={"enabled": False})
    assert api.delete("/v1/settings").json()["enabled"] is True
