"""Tests for place reviews"""


def post_review(client, place, headers, rating=5, comment="Lovely evening"):
    return client.post(f"/api/places/{place['id']}/reviews", json={"rating": rating, "comment": comment}, headers=headers)


def test_visitor_reviews_place(client, make_place, visitor):
    place = make_place()
    r = post_review(client, place, visitor[0], rating=4)
    assert r.status_code == 201
    body = r.json()
    assert body["review_count"] == 1
    assert body["average_rating"] == 4
    review = body["reviews"][0]
    assert review["user_id"] == visitor[1]["id"]
    assert review["user_name"] == "Vic Visitor"
    assert review["comment"] == "Lovely evening"


def test_second_review_from_same_visitor_conflicts(client, make_place, visitor, other_visitor):
    place = make_place()
    assert post_review(client, place, visitor[0]).status_code == 201
    r = post_review(client, place, visitor[0], rating=1, comment="Changed my mind")
    assert r.status_code == 409
    assert r.json()["detail"] == "You have already reviewed this place"

    r = post_review(client, place, other_visitor[0], rating=2)
    assert r.status_code == 201
    assert r.json()["review_count"] == 2
    assert r.json()["average_rating"] == 3.5


def test_promoter_cannot_review(client, make_place, promoter):
    place = make_place()
    r = post_review(client, place, promoter[0])
    assert r.status_code == 403
    assert r.json()["detail"] == "Only visitors can write reviews"


def test_rating_bounds_and_comment_required(client, make_place, visitor):
    place = make_place()
    assert post_review(client, place, visitor[0], rating=0).status_code == 400
    assert post_review(client, place, visitor[0], rating=6).status_code == 400
    assert post_review(client, place, visitor[0], comment="  ").status_code == 400


def test_review_missing_place(client, visitor):
    r = post_review(client, {"id": "0123456789abcdef01234567"}, visitor[0])
    assert r.status_code == 404


def test_only_author_deletes_review(client, make_place, visitor, other_visitor, promoter):
    place = make_place()
    review_id = post_review(client, place, visitor[0]).json()["reviews"][0]["id"]
    url = f"/api/places/{place['id']}/reviews/{review_id}"

    assert client.delete(url, headers=other_visitor[0]).status_code == 403
    assert client.delete(url, headers=promoter[0]).status_code == 403

    r = client.delete(url, headers=visitor[0])
    assert r.status_code == 200
    assert r.json()["reviews"] == []

    assert client.delete(url, headers=visitor[0]).status_code == 404


def test_review_again_after_deleting(client, make_place, visitor):
    place = make_place()
    review_id = post_review(client, place, visitor[0]).json()["reviews"][0]["id"]
    client.delete(f"/api/places/{place['id']}/reviews/{review_id}", headers=visitor[0])
    assert post_review(client, place, visitor[0]).status_code == 201
