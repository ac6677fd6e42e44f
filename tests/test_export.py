from datetime import datetime, timezone
from io import BytesIO

from openpyxl import load_workbook

from backend.app.services.export import COLUMNS, format_timestamp


def _rows(content: bytes) -> list[list]:
    sheet = load_workbook(BytesIO(content)).active
    return [[c if c is not None else "" for c in row] for row in sheet.iter_rows(values_only=True)]


def test_export_all_columns_and_rows(client, make_user):
    _, _, staff_headers = make_user("staff")
    _, _, hr_headers = make_user("hr")
    client.post(
        "/resumes",
        headers=staff_headers,
        data={"candidate_name": "Asha", "email": "asha@x.com", "phone": "123", "position": "QA", "experience_years": "2"},
    )

    r = client.get("/export", headers=hr_headers)
    assert r.status_code == 200, r.text
    assert r.headers["content-type"].startswith("application/vnd.openxmlformats")
    assert 'filename="resumes_all.xlsx"' in r.headers["content-disposition"]

    rows = _rows(r.content)
    assert rows[0] == [header for header, _, _ in COLUMNS]
    assert rows[1][:6] == ["Asha", "asha@x.com", "123", "QA", 2, "awaiting_hr"]

    alias = client.get("/export/resumes.xlsx", headers=hr_headers)
    assert alias.status_code == 200
    assert len(_rows(alias.content)) == 2


def test_export_permissions_and_mine(client, make_user):
    _, _, a_headers = make_user("staff")
    _, _, b_headers = make_user("staff")
    client.post("/resumes", headers=a_headers, data={"candidate_name": "Mine", "email": "m@x.com"})
    client.post("/resumes", headers=b_headers, data={"candidate_name": "Theirs", "email": "t@x.com"})

    assert client.get("/export", headers=a_headers).status_code == 403

    r = client.get("/export/mine", headers=a_headers)
    assert r.status_code == 200, r.text
    names = [row[0] for row in _rows(r.content)[1:]]
    assert names == ["Mine"]


def test_timestamps_are_localized():
    ts = datetime(2030, 1, 20, 10, 0, tzinfo=timezone.utc)
    assert format_timestamp(ts, "Asia/Kolkata") == "2030-01-20 15:30"
    # Naive values are treated as UTC.
    assert format_timestamp(datetime(2030, 1, 20, 10, 0), "UTC") == "2030-01-20 10:00"
    assert format_timestamp(None) == ""
