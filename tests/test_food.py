from helpers import auth_headers

MONDAY = "2025-06-02"


def _item(client, owner, **overrides):
    body = {"name": " Пилешка супа ", "shelfLifeHours": 24, "cookingTemperature": 85}
    body.update(overrides)
    return client.post("/api/food-items", json=body, headers=auth_headers(owner))


def test_food_item_crud(client, user, make_user):
    h = auth_headers(user)
    r = _item(client, user)
    assert r.status_code == 201
    item = r.get_json()
    assert item["name"] == "Пилешка супа"
    _item(client, user, name="Мусака")
    r = client.get("/api/food-items?search=супа", headers=h)
    data = r.get_json()
    assert [i["id"] for i in data["items"]] == [item["id"]]
    assert data["limit"] == 50
    url = f"/api/food-items/{item['id']}"
    r = client.put(url, json={"cookingTemperature": None, "shelfLifeHours": 12}, headers=h)
    assert r.get_json()["cookingTemperature"] is None
    assert r.get_json()["shelfLifeHours"] == 12
    r = client.get(url, headers=auth_headers(make_user()))
    assert r.status_code == 403
    assert r.get_json()["code"] == "ACCESS_DENIED"
    r = client.delete(url, headers=h)
    assert r.get_json()["deletedId"] == item["id"]
    assert client.get(url, headers=h).get_json()["code"] == "FOOD_ITEM_NOT_FOUND"


def test_food_item_validation(client, user, make_user, make_establishment):
    assert _item(client, user, name="").get_json()["code"] == "INVALID_NAME"
    assert _item(client, user, shelfLifeHours=0).get_json()["code"] == "INVALID_SHELF_LIFE"
    assert _item(client, user, shelfLifeHours="24").get_json()["code"] == "INVALID_SHELF_LIFE"
    assert _item(client, user, cookingTemperature=85.5).get_json()["code"] == "INVALID_COOKING_TEMPERATURE"
    foreign = make_establishment(make_user())
    r = _item(client, user, establishmentId=foreign["id"])
    assert r.status_code == 404
    assert r.get_json()["code"] == "ESTABLISHMENT_NOT_FOUND"


# GIVEN: a user without food items
# WHEN: the diary backfill runs
# THEN: nothing is created and the counters are zero
def test_backfill_without_items(client, user):
    r = client.post("/api/food-diary/generate", json={}, headers=auth_headers(user))
    assert r.status_code == 200
    data = r.get_json()
    assert data["entriesGenerated"] == 0
    assert data["startDate"] == ""
    assert "add food items" in data["message"]


def test_backfill_is_idempotent(client, user):
    h = auth_headers(user)
    _item(client, user)
    r = client.post("/api/food-diary/generate", json={"daysToGenerate": 2.0}, headers=h)
    data = r.get_json()
    assert data["entriesGenerated"] == 6
    assert data["daysCovered"] == 3
    assert data["foodItemsProcessed"] == 1
    again = client.post("/api/food-diary/generate", json={"daysToGenerate": 2}, headers=h).get_json()
    assert again["entriesGenerated"] == 0
    entries = client.get("/api/food-diary", headers=h).get_json()
    assert entries["total"] == 6
    assert {e["time"] for e in entries["entries"]} == {"08:00", "17:00"}
    assert entries["entries"][0]["foodItemName"] == "Пилешка супа"
    assert entries["entries"][0]["temperature"] == 85


def test_backfill_rejects_bad_days(client, user):
    h = auth_headers(user)
    for bad in (-1, 366, 2.5, "10"):
        r = client.post("/api/food-diary/generate", json={"daysToGenerate": bad}, headers=h)
        assert r.get_json()["code"] == "INVALID_DAYS_TO_GENERATE"


def test_diary_entry_updates(client, user, make_user):
    h = auth_headers(user)
    _item(client, user)
    client.post("/api/food-diary/generate", json={"daysToGenerate": 0}, headers=h)
    entry = client.get("/api/food-diary", headers=h).get_json()["entries"][0]
    url = f"/api/food-diary/{entry['id']}"
    r = client.put(url, json={"temperature": 10}, headers=h)
    assert r.get_json()["code"] == "SYSTEM_FIELDS_NOT_ALLOWED"
    assert client.put(url, json={"time": "25:00"}, headers=h).get_json()["code"] == "INVALID_TIME_FORMAT"
    r = client.put(url, json={"time": "9:15", "quantity": 3, "notes": " порции "}, headers=h)
    body = r.get_json()
    assert (body["time"], body["quantity"], body["notes"]) == ("9:15", "3", "порции")
    assert client.get(url, headers=auth_headers(make_user())).status_code == 403
    assert client.delete(url, headers=h).get_json()["deletedId"] == entry["id"]
    assert client.get(url, headers=h).status_code == 404


def test_food_template_validation(client, user, make_user):
    h = auth_headers(user)
    item = _item(client, user).get_json()
    foreign_item = _item(client, make_user()).get_json()
    base = {"name": "Обяд", "daysOfWeek": ["Monday"], "preparationTimes": ["12:00"], "foodItemIds": [item["id"]]}

    def post(**overrides):
        return client.post("/api/food-templates", json={**base, **overrides}, headers=h)

    assert post(name=None).get_json()["code"] == "MISSING_NAME"
    assert post(name=" ").get_json()["code"] == "INVALID_NAME"
    assert post(daysOfWeek=None).get_json()["code"] == "MISSING_DAYS_OF_WEEK"
    assert post(preparationTimes=["noon"]).get_json()["code"] == "INVALID_TIME_FORMAT"
    assert post(foodItemIds=[]).get_json()["code"] == "INVALID_FOOD_ITEM_IDS"
    assert post(foodItemIds=[999999]).get_json()["code"] == "FOOD_ITEM_NOT_FOUND"
    r = post(foodItemIds=[foreign_item["id"]])
    assert r.status_code == 403
    assert r.get_json()["code"] == "FOOD_ITEM_ACCESS_DENIED"
    r = client.get("/api/food-templates?limit=1000", headers=h)
    assert r.get_json()["code"] == "INVALID_LIMIT"


# GIVEN: a Monday lunch template over one food item
# WHEN: entries are generated from templates for a Monday
# THEN: one entry per preparation time, never duplicated
def test_generate_from_templates(client, user, make_establishment):
    h = auth_headers(user)
    est = make_establishment(user)
    item = _item(client, user).get_json()
    r = client.post(
        "/api/food-templates",
        json={
            "name": "Обяд",
            "daysOfWeek": ["monday"],
            "preparationTimes": ["12:00", "18:30"],
            "foodItemIds": [item["id"], item["id"]],
            "establishmentId": est["id"],
        },
        headers=h,
    )
    assert r.status_code == 201
    template = r.get_json()
    assert template["daysOfWeek"] == ["Monday"]
    assert template["foodItemIds"] == [item["id"]]
    r = client.post("/api/food-diary/generate-from-templates", json={"date": MONDAY}, headers=h)
    assert r.get_json() == {"date": MONDAY, "entriesGenerated": 2, "templatesProcessed": 1}
    r = client.post("/api/food-diary/generate-from-templates", json={"date": MONDAY}, headers=h)
    assert r.get_json()["entriesGenerated"] == 0
    entries = client.get(f"/api/food-diary?startDate={MONDAY}&endDate={MONDAY}", headers=h).get_json()["entries"]
    assert {e["establishmentId"] for e in entries} == {est["id"]}
    url = f"/api/food-templates/{template['id']}"
    assert client.put(url, json={"name": "Вечеря"}, headers=h).get_json()["name"] == "Вечеря"
    assert client.delete(url, headers=h).get_json()["deletedTemplate"]["id"] == template["id"]
