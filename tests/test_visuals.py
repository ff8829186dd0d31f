import pytest

from tests.conftest import auth
from vocavision.content.images import ImagePipeline, ImageResult, get_image_pipeline


class FakePipeline(ImagePipeline):
    def __init__(self, result):
        super().__init__(stability=None, cloudinary=None)
        self.result = result
        self.calls = []

    async def generate_and_upload(self, prompt, visual_type, word):
        self.calls.append((prompt, visual_type, word))
        return self.result


@pytest.fixture
async def word(make_word):
    return await make_word("ephemeral", definition="lasting a very short time")


def url(word_id, suffix=""):
    return f"/admin/words/{word_id}/visuals{suffix}"


async def test_put_rejects_non_list(client, admin_token, word):
    response = await client.put(url(word.id), json={"visuals": "CONCEPT"}, headers=auth(admin_token))
    assert response.status_code == 400
    assert response.json()["error"] == "visuals must be an array"


async def test_put_rejects_invalid_type_before_writing(client, admin_token, word):
    payload = {"visuals": [{"type": "CONCEPT", "labelEn": "ok"}, {"type": "DIAGRAM"}]}
    response = await client.put(url(word.id), json=payload, headers=auth(admin_token))
    assert response.status_code == 400

    response = await client.get(url(word.id), headers=auth(admin_token))
    assert response.json()["visuals"] == []


async def test_put_unknown_word(client, admin_token):
    response = await client.put(url(404), json={"visuals": [{"type": "CONCEPT"}]}, headers=auth(admin_token))
    assert response.status_code == 404


async def test_put_upserts_by_type(client, admin_token, word):
    payload = {"visuals": [
        {"type": "RHYME", "labelEn": "Rhyme", "captionEn": "memorable rhyme"},
        {"type": "CONCEPT", "labelEn": "Concept", "imageUrl": "https://img/concept.png"},
    ]}
    response = await client.put(url(word.id), json=payload, headers=auth(admin_token))
    assert response.status_code == 200
    assert [v["order"] for v in response.json()["visuals"]] == [2, 0]

    payload = {"visuals": [{"type": "CONCEPT", "captionKo": "짧은", "order": 5}]}
    response = await client.put(url(word.id), json=payload, headers=auth(admin_token))
    concept = response.json()["visuals"][0]
    assert concept["labelEn"] == "Concept"
    assert concept["captionKo"] == "짧은"
    assert concept["order"] == 5

    response = await client.get(url(word.id), headers=auth(admin_token))
    visuals = response.json()["visuals"]
    assert [v["type"] for v in visuals] == ["RHYME", "CONCEPT"]
    assert len({v["id"] for v in visuals}) == 2


async def test_delete_visual(client, admin_token, word):
    await client.put(url(word.id), json={"visuals": [{"type": "MNEMONIC"}]}, headers=auth(admin_token))

    response = await client.delete(url(word.id, "/SKETCH"), headers=auth(admin_token))
    assert response.status_code == 400

    response = await client.delete(url(word.id, "/MNEMONIC"), headers=auth(admin_token))
    assert response.json() == {"success": True}

    response = await client.delete(url(word.id, "/MNEMONIC"), headers=auth(admin_token))
    assert response.status_code == 404


async def test_visuals_require_admin(client, user_token, word):
    response = await client.get(url(word.id), headers=auth(user_token))
    assert response.status_code == 403


async def test_generate_visual(client, app, admin_token, word):
    pipeline = FakePipeline(ImageResult("https://res.cloudinary.com/x.png", "ephemeral-concept-1", 42))
    app.dependency_overrides[get_image_pipeline] = lambda: pipeline

    response = await client.post(url(word.id, "/CONCEPT/generate"), headers=auth(admin_token))
    assert response.status_code == 200

    body = response.json()
    assert body["visual"]["imageUrl"] == "https://res.cloudinary.com/x.png"
    assert body["visual"]["order"] == 0
    assert body["publicId"] == "ephemeral-concept-1"
    assert body["seed"] == 42

    prompt, _, text = pipeline.calls[0]
    assert text == "ephemeral"
    assert "lasting a very short time" in prompt
    assert body["visual"]["promptEn"] == prompt


async def test_generate_mnemonic_uses_existing_caption(client, app, admin_token, word):
    pipeline = FakePipeline(ImageResult("https://img/m.png", "m", 1))
    app.dependency_overrides[get_image_pipeline] = lambda: pipeline
    await client.put(
        url(word.id),
        json={"visuals": [{"type": "MNEMONIC", "captionEn": "a fairy melting in the sun", "labelKo": "연상"}]},
        headers=auth(admin_token),
    )

    response = await client.post(url(word.id, "/MNEMONIC/generate"), headers=auth(admin_token))
    assert "a fairy melting in the sun" in pipeline.calls[0][0]
    assert response.json()["visual"]["labelKo"] == "연상"


async def test_generate_without_image(client, app, admin_token, word):
    app.dependency_overrides[get_image_pipeline] = lambda: FakePipeline(None)
    response = await client.post(url(word.id, "/RHYME/generate"), headers=auth(admin_token))
    assert response.status_code == 502


async def test_generate_not_configured(client, admin_token, word):
    response = await client.post(url(word.id, "/CONCEPT/generate"), headers=auth(admin_token))
    assert response.status_code == 503
