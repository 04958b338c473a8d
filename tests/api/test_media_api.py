# tests/api/test_media_api.py
# HTTP contract for /api/media/upload and the static media mount


def test_upload_creates_board_and_serves_file(api_client):
    response = api_client.post(
        "/api/media/upload",
        data={"boardId": "b1"},
        files={"file": ("notes.txt", b"hello file", "text/plain")},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["message"] == "File uploaded successfully"
    item = body["mediaItem"]
    assert item["name"] == "notes.txt"
    assert item["type"] == "text/plain"
    assert item["size"] == 10
    assert body["board"]["media"] == [item]
    assert api_client.get("/api/boards/b1").json()["media"] == [item]

    served = api_client.get(item["url"])
    assert served.status_code == 200
    assert served.content == b"hello file"


def test_upload_keeps_existing_text(api_client):
    api_client.put("/api/boards/b1", json={"text": "keep"})

    response = api_client.post(
        "/api/media/upload",
        data={"boardId": "b1"},
        files={"file": ("a.bin", b"\x00\x01", "application/octet-stream")},
    )

    assert response.json()["board"]["text"] == "keep"


def test_upload_without_board_id(api_client):
    response = api_client.post("/api/media/upload", files={"file": ("a.txt", b"x", "text/plain")})

    assert response.status_code == 400
    assert response.json()["error"]["message"] == "Board ID is required"


def test_upload_without_file(api_client):
    response = api_client.post("/api/media/upload", data={"boardId": "b1"})

    assert response.status_code == 400
    assert response.json()["error"]["message"] == "No file uploaded"


def test_upload_over_limit_is_413(api_client):
    api_client.app.state.media.max_upload_bytes = 8

    response = api_client.post(
        "/api/media/upload",
        data={"boardId": "b1"},
        files={"file": ("big.bin", b"0123456789", "application/octet-stream")},
    )

    assert response.status_code == 413
    assert response.json()["error"]["code"] == "PAYLOAD_TOO_LARGE"
    assert api_client.get("/api/boards/b1").status_code == 404


def test_board_text_upload_delete_flow(api_client):
    assert api_client.put("/api/boards/b1", json={"text": "hello"}).status_code == 200
    board = api_client.get("/api/boards/b1").json()
    assert board["text"] == "hello"
    assert board["media"] == []

    api_client.post(
        "/api/media/upload",
        data={"boardId": "b1"},
        files={"file": ("pic.png", b"\x89PNG", "image/png")},
    )
    media = api_client.get("/api/boards/b1").json()["media"]
    assert len(media) == 1
    assert media[0]["type"] == "image/png"

    api_client.delete("/api/boards/b1", params={"mediaIndex": 0})
    assert api_client.get("/api/boards/b1").json()["media"] == []
