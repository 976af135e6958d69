"""
Demo endpoints kept alongside the shop: a plain items CRUD and a voting
eligibility checker. Neither touches the catalog, carts or accounts.
"""
import itertools
import threading
from datetime import date
from typing import Dict, List, Optional

from fastapi import APIRouter, HTTPException, Request

from schemas import Item, ItemBody, VoteCheckBody, Voter, VoterBody

VOTING_AGE = 18

router = APIRouter(prefix="/api")


class ItemStore:
    def __init__(self):
        self._items: Dict[int, Item] = {}
        self._ids = itertools.count(1)
        self._lock = threading.Lock()
        self.create("Item 1", "First item")
        self.create("Item 2", "Second item")
        self.create("Item 3", "Third item")

    def all(self) -> List[Item]:
        return list(self._items.values())

    def get(self, item_id: int) -> Optional[Item]:
        return self._items.get(item_id)

    def create(self, name: Optional[str], description: Optional[str]) -> Item:
        with self._lock:
            item = Item(id=next(self._ids), name=name, description=description)
            self._items[item.id] = item
            return item

    def update(self, item_id: int, name: Optional[str], description: Optional[str]) -> Optional[Item]:
        with self._lock:
            item = self._items.get(item_id)
            if item is None:
                return None
            item.name = name or item.name
            item.description = description or item.description
            return item

    def delete(self, item_id: int) -> bool:
        with self._lock:
            return self._items.pop(item_id, None) is not None


class VoterRegistry:
    def __init__(self):
        self._voters: Dict[int, Voter] = {}
        self._ids = itertools.count(1)
        self._lock = threading.Lock()
        self.add("User NName1", 25)
        self.add("User Name2", 17)
        self.add("User Name3", 45, has_voted=True)

    def all(self) -> List[Voter]:
        return list(self._voters.values())

    def get(self, voter_id: int) -> Optional[Voter]:
        return self._voters.get(voter_id)

    def add(self, name: Optional[str], age: Optional[int], has_voted: bool = False) -> Voter:
        with self._lock:
            voter = Voter(id=next(self._ids), name=name, age=age, has_voted=has_voted)
            self._voters[voter.id] = voter
            return voter


def age_on(born: date, today: Optional[date] = None) -> int:
    today = today or date.today()
    return today.year - born.year - ((today.month, today.day) < (born.month, born.day))


def eligibility(age: int) -> dict:
    can_vote = age >= VOTING_AGE
    if can_vote:
        message = "You are eligible to vote!"
    else:
        message = (f"You must be {VOTING_AGE} or older to vote. "
                   f"You need to wait {VOTING_AGE - age} more year(s).")
    return {"canVote": can_vote, "age": age, "message": message}


def _items(request: Request) -> ItemStore:
    return request.app.state.services.items


def _voters(request: Request) -> VoterRegistry:
    return request.app.state.services.voters


# Items

@router.get("/items")
def list_items(request: Request):
    return _items(request).all()


@router.get("/items/{item_id}")
def get_item(item_id: int, request: Request):
    item = _items(request).get(item_id)
    if not item:
        raise HTTPException(status_code=404, detail="Item not found")
    return item


@router.post("/items", status_code=201)
def create_item(body: ItemBody, request: Request):
    return _items(request).create(body.name, body.description)


@router.put("/items/{item_id}")
def update_item(item_id: int, body: ItemBody, request: Request):
    item = _items(request).update(item_id, body.name, body.description)
    if not item:
        raise HTTPException(status_code=404, detail="Item not found")
    return item


@router.delete("/items/{item_id}")
def delete_item(item_id: int, request: Request):
    if not _items(request).delete(item_id):
        raise HTTPException(status_code=404, detail="Item not found")
    return {"message": "Item deleted successfully"}


# Voting

@router.post("/check-vote-eligibility")
def check_vote_eligibility(body: VoteCheckBody):
    if not body.age and body.date_of_birth is None:
        raise HTTPException(status_code=400, detail="Please provide either age or dateOfBirth")
    age = age_on(body.date_of_birth) if body.date_of_birth else body.age
    return eligibility(age)


@router.get("/check-vote-eligibility/{age}")
def check_vote_eligibility_by_age(age: str):
    try:
        years = int(age)
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid age parameter")
    return eligibility(years)


@router.get("/users")
def list_voters(request: Request):
    return _voters(request).all()


@router.post("/users", status_code=201)
def add_voter(body: VoterBody, request: Request):
    return _voters(request).add(body.name, body.age)


@router.get("/users/{voter_id}/can-vote")
def voter_can_vote(voter_id: int, request: Request):
    voter = _voters(request).get(voter_id)
    if not voter:
        raise HTTPException(status_code=404, detail="User not found")
    can_vote = (voter.age or 0) >= VOTING_AGE and not voter.has_voted
    if voter.has_voted:
        message = "User has already voted"
    elif can_vote:
        message = "User is eligible to vote"
    else:
        message = "User is not old enough to vote"
    return {
        "userId": voter.id,
        "name": voter.name,
        "age": voter.age,
        "canVote": can_vote,
        "hasVoted": voter.has_voted,
        "message": message,
    }
