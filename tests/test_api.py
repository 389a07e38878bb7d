"""HTTP API tests"""

import pytest

from charting.config import Settings
from main import create_app
from fastapi.testclient import TestClient
from tests.conftest import RATES_CSV, RATES_JSON


def upload(client, content, name="rates.csv", mimetype="text/csv"):
    response = client.post("/upload", files={"dataFile": (name, content, mimetype)})
    assert response.status_code == 200
    return response.json()


class TestServiceInfo:

    def test_root(self, client):
        data = client.get("/").json()
        assert data["status"] == "operational"
        assert "groupedBar" in data["capabilities"]

    def test_health(self, client):
        assert client.get("/health").json()["status"] == "healthy"

    def test_chart_types(self, client):
        chart_types = client.get("/chart_types").json()["chart_types"]
        assert set(chart_types) == {"bar", "line", "scatter", "pie", "groupedBar"}


class TestUpload:

    def test_upload_stores_file(self, client, settings):
        result = upload(client, RATES_CSV)
        assert result["originalname"] == "rates.csv"
        assert result["mimetype"] == "text/csv"
        assert result["filename"].endswith(".csv")
        assert result["filename"][:-4].isdigit()

    def test_uploaded_file_is_served(self, client):
        result = upload(client, RATES_CSV)
        response = client.get(f"/uploads/{result['filename']}")
        assert response.status_code == 200
        assert response.text == RATES_CSV

    def test_missing_file(self, client):
        response = client.post("/upload", data={"note": "nothing attached"})
        assert response.status_code == 400
        assert response.text == "No file uploaded."

    def test_unknown_stored_file(self, client):
        assert client.get("/uploads/nope.csv").status_code == 404


class TestDataset:

    def test_load_csv_renders_bar_chart(self, client):
        stored = upload(client, RATES_CSV)
        response = client.post("/dataset", json=stored)
        assert response.status_code == 200
        data = response.json()
        assert data["records"] == 2
        assert data["default_x"] == "State"
        assert data["default_y"] == "Rate"
        assert data["rendered"] is True
        assert data["chart"]["labels"] == ["CA", "NY"]
        assert data["chart"]["series"][0]["values"] == [10.0, 20.0]

    def test_load_json(self, client):
        stored = upload(client, RATES_JSON, name="rates.json", mimetype="application/json")
        data = client.post("/dataset", json={**stored, "chart_type": "line"}).json()
        assert data["columns"] == ["State", "Rate", "Visits"]
        assert data["chart"]["chart_type"] == "line"
        assert data["chart"]["series"][0]["values"] == [10.0, 20.5]

    def test_unsupported_type_keeps_chart(self, client, app):
        client.post("/dataset", json=upload(client, RATES_CSV))
        session = app.state.session
        dataset, active = session.dataset, session.active

        stored = upload(client, "hello", name="notes.txt", mimetype="text/plain")
        response = client.post("/dataset", json=stored)
        assert response.status_code == 415
        assert "Unsupported file type" in response.json()["detail"]
        assert session.active is active
        assert session.dataset is dataset
        assert client.get("/chart").status_code == 200
        assert client.get("/columns").json()["available"][0] == "State"

    def test_failed_default_chart_still_loads(self, client, app):
        client.post("/dataset", json=upload(client, RATES_CSV))

        stored = upload(client, "Name,Score\nAda,3\n", name="scores.csv")
        response = client.post("/dataset", json={**stored, "chart_type": "groupedBar"})
        assert response.status_code == 200
        data = response.json()
        assert data["columns"] == ["Name", "Score"]
        assert data["rendered"] is False
        assert "Inpatient Physician" in data["message"]
        assert app.state.session.active is None
        assert client.get("/columns").json()["available"] == ["Name", "Score"]

    def test_parse_error(self, client):
        stored = upload(client, "[{", name="bad.json", mimetype="application/json")
        response = client.post("/dataset", json=stored)
        assert response.status_code == 422

    def test_missing_stored_file(self, client):
        response = client.post("/dataset", json={"filename": "404.csv", "mimetype": "text/csv"})
        assert response.status_code == 404

    def test_columns_and_info(self, client):
        client.post("/dataset", json=upload(client, RATES_CSV))
        columns = client.get("/columns").json()
        assert columns["available"] == ["State", "Rate", "Inpatient Physician", "Outpatient Physician"]
        assert columns["selected_x"] == "State"

        info = client.get("/dataset_info").json()
        assert info["shape"] == {"rows": 2, "columns": 4}
        assert info["numeric_values"]["Rate"] == 2
        assert info["numeric_values"]["Outpatient Physician"] == 1


class TestRender:

    @pytest.fixture(autouse=True)
    def loaded(self, client):
        client.post("/dataset", json=upload(client, RATES_CSV))

    def test_render_scatter(self, client):
        response = client.post("/render", json={
            "chart_type": "scatter",
            "x_column": "Inpatient Physician",
            "y_column": "Outpatient Physician",
        })
        data = response.json()
        assert data["rendered"] is True
        assert data["renderer"] == "plotly"
        assert data["chart"]["points"] == [{"x": 5.0, "y": 7.0}, {"x": 6.0, "y": None}]
        assert data["chart"]["missing"]["Outpatient Physician"] == 1

    def test_render_grouped_bar(self, client):
        data = client.post("/render", json={"chart_type": "groupedBar"}).json()
        names = [s["name"] for s in data["chart"]["series"]]
        assert names == ["Inpatient Physician", "Outpatient Physician"]

    def test_unknown_column(self, client):
        response = client.post("/render", json={"x_column": "State", "y_column": "Nope"})
        assert response.status_code == 400
        assert client.get("/chart").status_code == 404

    def test_invalid_chart_type(self, client):
        assert client.post("/render", json={"chart_type": "radar"}).status_code == 422

    def test_chart_export(self, client):
        response = client.get("/chart")
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/html")

    def test_delete_chart(self, client):
        assert client.delete("/chart").json() == {"rendered": False}
        assert client.get("/chart").status_code == 404


def test_render_without_dataset(client):
    data = client.post("/render", json={"chart_type": "bar"}).json()
    assert data == {"rendered": False, "message": "No data to render."}


def test_matplotlib_backend(tmp_path):
    settings = Settings(upload_dir=str(tmp_path), renderer="matplotlib")
    with TestClient(create_app(settings)) as client:
        client.post("/dataset", json=upload(client, RATES_CSV))
        response = client.get("/chart")
        assert response.headers["content-type"] == "image/png"
        assert response.content.startswith(b"\x89PNG")
