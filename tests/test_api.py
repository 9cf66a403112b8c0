async def _create_item(client, **payload):
    res = await client.post("/inventory/items", json=payload)
    assert res.status_code == 201, res.text
    return res.json()


async def _create_recipe(client, name, ingredients, product_type=None):
    res = await client.post("/recipes/", json={
        "name": name,
        "product_type": product_type,
        "ingredients": [{"name": n, "quantity": q, "unit": u} for n, q, u in ingredients],
    })
    assert res.status_code == 201, res.text
    return res.json()


async def _create_order(client, quantity, recipe_id=None, product_description=""):
    res = await client.post("/sales-orders/", json={
        "customer_name": "Ana",
        "recipe_id": recipe_id,
        "product_description": product_description,
        "quantity": quantity,
        "order_date": "2024-05-01",
    })
    assert res.status_code == 201, res.text
    return res.json()


async def test_preview_and_confirm_production(client):
    flour = await _create_item(client, kind="RAW_MATERIAL", name="Flour", unit_value=1, unit_type="kg", stock_count=5)
    recipe = await _create_recipe(client, "Bread", [("flour", 500, "g")], product_type="bread")

    preview = await client.post("/production/preview", json={"recipe_id": recipe["id"], "quantity": 4})
    assert preview.status_code == 200
    plan = preview.json()
    assert plan["feasible"] is True
    assert plan["deductions"][0]["new_stock_count"] == 3

    confirm = await client.post("/production/confirm", json=plan)
    assert confirm.status_code == 201, confirm.text
    assert confirm.json()["stock_counts"][flour["id"]] == 3
    assert len(confirm.json()["created_item_ids"]) == 1

    items = (await client.get("/inventory/items", params={"kind": "FINISHED_GOOD"})).json()
    assert [(i["name"], i["stock_count"]) for i in items] == [("Bread", 4)]


async def test_preview_reports_every_shortage(client):
    await _create_item(client, kind="RAW_MATERIAL", name="flour", unit_value=150, unit_type="g", stock_count=1)
    recipe = await _create_recipe(client, "Bread", [("Flour", 100, "g"), ("Yeast", 7, "g")])

    res = await client.post("/production/preview", json={"recipe_id": recipe["id"], "quantity": 2})

    assert res.status_code == 200
    body = res.json()
    assert body["feasible"] is False
    by_name = {s["name"]: s for s in body["shortages"]}
    assert by_name["Flour"]["deficit"] == 50
    assert by_name["Yeast"]["kind"] == "missing_ingredient"


async def test_confirming_a_stale_plan_replans(client):
    flour = await _create_item(client, kind="RAW_MATERIAL", name="Flour", unit_value=1, unit_type="kg", stock_count=5)
    recipe = await _create_recipe(client, "Bread", [("Flour", 1, "kg")])
    plan = (await client.post("/production/preview", json={"recipe_id": recipe["id"], "quantity": 1})).json()

    res = await client.patch(f"/inventory/items/{flour['id']}/stock", json={"stock_count": 3})
    assert res.status_code == 200

    confirm = await client.post("/production/confirm", json=plan)
    assert confirm.status_code == 201
    assert confirm.json()["stock_counts"][flour["id"]] == 2


async def test_produce_with_shortage_is_a_conflict(client):
    await _create_item(client, kind="RAW_MATERIAL", name="Flour", unit_value=1, unit_type="kg", stock_count=0)
    recipe = await _create_recipe(client, "Bread", [("Flour", 1, "kg")])

    res = await client.post("/production/produce", json={"recipe_id": recipe["id"], "quantity": 1})

    assert res.status_code == 409
    detail = res.json()["detail"]
    assert detail["code"] == "SHORTAGE"
    assert detail["shortages"][0]["name"] == "Flour"


async def test_non_positive_production_quantity_is_rejected(client):
    recipe = await _create_recipe(client, "Bread", [("Flour", 1, "kg")])
    res = await client.post("/production/preview", json={"recipe_id": recipe["id"], "quantity": 0})
    assert res.status_code == 422


async def test_preview_unknown_recipe_is_404(client):
    res = await client.post(
        "/production/preview", json={"recipe_id": "00000000-0000-0000-0000-000000000000", "quantity": 1}
    )
    assert res.status_code == 404
    assert res.json()["detail"]["code"] == "RECIPE_NOT_FOUND"


async def test_complete_and_reopen_sales_order(client):
    tart = await _create_item(client, kind="FINISHED_GOOD", name="Lemon Tart", stock_count=10)
    order = await _create_order(client, 5, product_description="lemon tart")

    preview = await client.get(f"/sales-orders/{order['id']}/completion-preview")
    assert preview.status_code == 200
    assert preview.json()["new_stock_count"] == 5

    done = await client.post(f"/sales-orders/{order['id']}/complete")
    assert done.status_code == 200
    assert done.json()["order_status"] == "COMPLETED"

    again = await client.post(f"/sales-orders/{order['id']}/complete")
    assert again.status_code == 400

    reopened = await client.post(f"/sales-orders/{order['id']}/reopen")
    assert reopened.status_code == 200

    order_now = (await client.get(f"/sales-orders/{order['id']}")).json()
    item_now = (await client.get(f"/inventory/items/{tart['id']}")).json()
    assert order_now["status"] == "PENDING"
    assert item_now["stock_count"] == 5


async def test_complete_without_enough_stock(client):
    await _create_item(client, kind="FINISHED_GOOD", name="Lemon Tart", stock_count=1)
    order = await _create_order(client, 3, product_description="Lemon Tart")

    res = await client.post(f"/sales-orders/{order['id']}/complete")

    assert res.status_code == 409
    assert res.json()["detail"]["shortages"][0]["kind"] == "insufficient_finished_good"


async def test_complete_without_finished_good_is_404(client):
    order = await _create_order(client, 1, product_description="Croissant")
    res = await client.post(f"/sales-orders/{order['id']}/complete")
    assert res.status_code == 404


async def test_order_needs_recipe_or_description(client):
    res = await client.post("/sales-orders/", json={
        "customer_name": "Ana", "quantity": 1, "order_date": "2024-05-01",
    })
    assert res.status_code == 422


async def test_deleting_a_recipe_unlinks_its_orders(client):
    recipe = await _create_recipe(client, "Carrot Cake", [("Carrots", 200, "g")], product_type="cake")
    order = await _create_order(client, 1, recipe_id=recipe["id"])
    assert order["product_type"] == "cake"

    res = await client.delete(f"/recipes/{recipe['id']}")
    assert res.status_code == 204

    order_now = (await client.get(f"/sales-orders/{order['id']}")).json()
    assert order_now["recipe_id"] is None
    assert order_now["product_description"] == "Carrot Cake"


async def test_update_recipe_replaces_ingredients(client):
    recipe = await _create_recipe(client, "Bread", [("Flour", 1, "kg"), ("Salt", 10, "g")])

    res = await client.put(f"/recipes/{recipe['id']}", json={
        "name": "Rye Bread",
        "ingredients": [{"name": "Rye flour", "quantity": 800, "unit": "G"}],
    })

    assert res.status_code == 200
    assert res.json()["name"] == "Rye Bread"
    assert res.json()["ingredients"] == [{"name": "Rye flour", "quantity": 800, "unit": "g"}]


async def test_recipe_with_unknown_unit_is_rejected(client):
    res = await client.post("/recipes/", json={
        "name": "Bread", "ingredients": [{"name": "Flour", "quantity": 1, "unit": "cup"}],
    })
    assert res.status_code == 422


async def test_item_names_are_unique_per_kind_ignoring_case(client):
    await _create_item(client, kind="RAW_MATERIAL", name="Sugar", unit_value=1000, unit_type="g")

    dup = await client.post("/inventory/items", json={"kind": "RAW_MATERIAL", "name": " SUGAR ", "unit_type": "g"})
    assert dup.status_code == 409

    other_kind = await client.post("/inventory/items", json={"kind": "FINISHED_GOOD", "name": "sugar"})
    assert other_kind.status_code == 201


async def test_stock_edit_with_stale_version_is_rejected(client):
    item = await _create_item(client, kind="RAW_MATERIAL", name="Butter", unit_value=250, unit_type="g", stock_count=4)

    ok = await client.patch(
        f"/inventory/items/{item['id']}/stock", json={"stock_count": 3, "expected_version": item["version"]}
    )
    assert ok.status_code == 200
    assert ok.json()["version"] == item["version"] + 1

    stale = await client.patch(
        f"/inventory/items/{item['id']}/stock", json={"stock_count": 2, "expected_version": item["version"]}
    )
    assert stale.status_code == 409
    assert stale.json()["detail"]["code"] == "CONCURRENT_MODIFICATION"


async def test_negative_stock_is_rejected(client):
    item = await _create_item(client, kind="RAW_MATERIAL", name="Butter", unit_value=250, unit_type="g", stock_count=4)
    res = await client.patch(f"/inventory/items/{item['id']}/stock", json={"stock_count": -1})
    assert res.status_code == 422


async def test_unit_conversion_endpoint(client):
    ok = await client.get("/units/convert", params={"value": 100, "from": "g", "to": "kg"})
    assert ok.status_code == 200
    assert ok.json()["result"] == 0.1

    bad = await client.get("/units/convert", params={"value": 5, "from": "g", "to": "ml"})
    assert bad.status_code == 400
    assert bad.json()["detail"]["code"] == "INCOMPATIBLE_UNITS"

    units = (await client.get("/units/")).json()
    assert {"category": "mass", "units": {"g": 1, "kg": 1000}} in units


async def test_dashboard_summary(client):
    await _create_item(client, kind="RAW_MATERIAL", name="Flour", unit_value=1, unit_type="kg", stock_count=0)
    await _create_item(client, kind="FINISHED_GOOD", name="Bread", stock_count=2)
    await _create_recipe(client, "Bread", [("Flour", 1, "kg")])
    await _create_order(client, 1, product_description="Bread")

    summary = (await client.get("/dashboard/summary")).json()

    assert summary == {
        "recipes": 1,
        "raw_materials": 1,
        "finished_goods": 1,
        "out_of_stock_items": 1,
        "pending_orders": 1,
        "completed_orders": 0,
    }


async def test_unknown_inventory_item_is_404(client):
    res = await client.get("/inventory/items/00000000-0000-0000-0000-000000000000")
    assert res.status_code == 404
    assert res.json()["detail"]["code"] == "INVENTORY_ITEM_NOT_FOUND"


async def test_confirm_commits_the_server_plan_not_the_submitted_numbers(client):
    flour = await _create_item(client, kind="RAW_MATERIAL", name="Flour", unit_value=1, unit_type="kg", stock_count=1)
    recipe = await _create_recipe(client, "Bread", [("Flour", 1, "kg")])
    plan = (await client.post("/production/preview", json={"recipe_id": recipe["id"], "quantity": 1})).json()

    plan["deductions"] = []
    plan["finished_good"]["new_stock_count"] = 1000

    res = await client.post("/production/confirm", json=plan)
    assert res.status_code == 201, res.text

    items = (await client.get("/inventory/items")).json()
    assert sorted((i["name"], i["kind"], i["stock_count"]) for i in items) == [
        ("Bread", "FINISHED_GOOD", 1),
        ("Flour", "RAW_MATERIAL", 0),
    ]
    assert (await client.get(f"/inventory/items/{flour['id']}")).json()["stock_count"] == 0


async def test_confirm_ignores_inflated_deductions(client):
    flour = await _create_item(client, kind="RAW_MATERIAL", name="Flour", unit_value=1, unit_type="kg", stock_count=1)
    recipe = await _create_recipe(client, "Bread", [("Flour", 1, "kg")])
    plan = (await client.post("/production/preview", json={"recipe_id": recipe["id"], "quantity": 1})).json()

    plan["deductions"][0]["new_stock_count"] = 50

    res = await client.post("/production/confirm", json=plan)
    assert res.status_code == 201
    assert (await client.get(f"/inventory/items/{flour['id']}")).json()["stock_count"] == 0


async def test_non_finite_quantities_are_rejected(client):
    recipe = await _create_recipe(client, "Bread", [("Flour", 1, "kg")])
    headers = {"content-type": "application/json"}

    for raw in ("NaN", "Infinity"):
        body = f'{{"recipe_id": "{recipe["id"]}", "quantity": {raw}}}'
        assert (await client.post("/production/preview", content=body, headers=headers)).status_code == 422
        assert (await client.post("/production/produce", content=body, headers=headers)).status_code == 422

    item = await _create_item(client, kind="RAW_MATERIAL", name="Butter", unit_value=250, unit_type="g", stock_count=4)
    res = await client.patch(
        f"/inventory/items/{item['id']}/stock", content='{"stock_count": NaN}', headers=headers
    )
    assert res.status_code == 422

    res = await client.post(
        "/recipes/",
        content='{"name": "Bread", "ingredients": [{"name": "Flour", "quantity": NaN, "unit": "kg"}]}',
        headers=headers,
    )
    assert res.status_code == 422
