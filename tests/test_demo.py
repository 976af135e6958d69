from datetime import date

from demo import age_on, eligibility


def test_items_crud(client):
    assert len(client.get("/api/items").json()) == 3

    res = client.post("/api/items", json={"name": "Item 4", "description": "Fourth item"})
    assert res.status_code == 201
    item_id = res.json()["id"]

    res = client.put(f"/api/items/{item_id}", json={"name": "Renamed"})
    assert res.json() == {"id": item_id, "name": "Renamed", "description": "Fourth item"}

    assert client.delete(f"/api/items/{item_id}").json() == {"message": "Item deleted successfully"}
    res = client.get(f"/api/items/{item_id}")
    assert res.status_code == 404
    assert res.json() == {"message": "Item not found"}


def test_age_on_birthday_boundary():
    assert age_on(date(2000, 6, 15), today=date(2018, 6, 14)) == 17
    assert age_on(date(2000, 6, 15), today=date(2018, 6, 15)) == 18


def test_eligibility_message():
    assert eligibility(18)["canVote"] is True
    assert eligibility(15)["message"].endswith("wait 3 more year(s).")


def test_check_vote_eligibility(client):
    assert client.post("/api/check-vote-eligibility", json={"age": 30}).json()["canVote"] is True
    assert client.post("/api/check-vote-eligibility", json={"dateOfBirth": "2020-01-01"}).json()["canVote"] is False
    assert client.post("/api/check-vote-eligibility", json={}).status_code == 400
    assert client.get("/api/check-vote-eligibility/17").json()["canVote"] is False
    assert client.get("/api/check-vote-eligibility/abc").status_code == 400


def test_voters(client):
    assert client.get("/api/users/1/can-vote").json()["message"] == "User is eligible to vote"
    assert client.get("/api/users/2/can-vote").json()["message"] == "User is not old enough to vote"
    assert client.get("/api/users/3/can-vote").json()["message"] == "User has already voted"
    assert client.get("/api/users/9/can-vote").status_code == 404

    res = client.post("/api/users", json={"name": "New Voter", "age": 20})
    assert res.status_code == 201
    assert res.json()["hasVoted"] is False
    assert len(client.get("/api/users").json()) == 4


def test_zero_age_without_birth_date_is_rejected(client):
    res = client.post("/api/check-vote-eligibility", json={"age": 0})
    assert res.status_code == 400
    assert res.json() == {"message": "Please provide either age or dateOfBirth"}
