import pytest

# path, (left key, left resource), (right key, right resource), parent key, children key
ASSOCIATIONS = [
    ('/docentes-materias', ('teacher_id', '/docentes'), ('subject_id', '/materias'), 'teacher_id', 'subjects'),
    ('/estudiantes-cursos', ('student_id', '/estudiantes'), ('course_id', '/cursos'), 'course_id', 'students'),
    ('/materias-cursos', ('subject_id', '/materias'), ('course_id', '/cursos'), 'course_id', 'subjects'),
]
IDS = [a[0] for a in ASSOCIATIONS]


def _pair(make_entity, left, right):
    return make_entity(left[1])['id'], make_entity(right[1])['id']


@pytest.mark.parametrize('path,left,right,parent_key,children', ASSOCIATIONS, ids=IDS)
def test_create_and_list(client, auth_headers, make_entity, path, left, right, parent_key, children):
    assert client.get(path, headers=auth_headers).status_code == 404
    left_id, right_id = _pair(make_entity, left, right)
    r = client.post(path, json={left[0]: left_id, right[0]: right_id}, headers=auth_headers)
    assert r.status_code == 201
    data = r.json()['data']
    assert data[left[0]] == left_id
    assert data[right[0]] == right_id
    assert data['created_at']

    rows = client.get(path, headers=auth_headers).json()['data']
    assert len(rows) == 1
    left_side, right_side = left[0][:-3], right[0][:-3]
    assert rows[0][left_side]['id'] == left_id
    assert rows[0][right_side]['id'] == right_id


@pytest.mark.parametrize('path,left,right,parent_key,children', ASSOCIATIONS, ids=IDS)
def test_duplicate_pair_conflicts_in_any_field_order(client, auth_headers, make_entity, path, left, right, parent_key, children):
    left_id, right_id = _pair(make_entity, left, right)
    first = client.post(path, json={left[0]: left_id, right[0]: right_id}, headers=auth_headers)
    assert first.status_code == 201
    for body in ({left[0]: left_id, right[0]: right_id}, {right[0]: right_id, left[0]: left_id}):
        r = client.post(path, json=body, headers=auth_headers)
        assert r.status_code == 409
        assert r.json()['data'] is None


@pytest.mark.parametrize('path,left,right,parent_key,children', ASSOCIATIONS, ids=IDS)
def test_create_requires_existing_references(client, auth_headers, make_entity, path, left, right, parent_key, children):
    left_id = make_entity(left[1])['id']
    r = client.post(path, json={left[0]: left_id, right[0]: 999}, headers=auth_headers)
    assert r.status_code == 400
    assert list(r.json()['errors']) == [right[0]]

    r = client.post(path, json={left[0]: left_id}, headers=auth_headers)
    assert r.status_code == 400
    assert right[0] in r.json()['errors']


@pytest.mark.parametrize('path,left,right,parent_key,children', ASSOCIATIONS, ids=IDS)
def test_inactive_reference_may_be_linked_but_is_not_listed(client, auth_headers, make_entity, path, left, right, parent_key, children):
    left_id, right_id = _pair(make_entity, left, right)
    client.delete(f'{right[1]}/{right_id}', headers=auth_headers)
    r = client.post(path, json={left[0]: left_id, right[0]: right_id}, headers=auth_headers)
    assert r.status_code == 201
    assert client.get(path, headers=auth_headers).status_code == 404


@pytest.mark.parametrize('path,left,right,parent_key,children', ASSOCIATIONS, ids=IDS)
def test_list_hides_rows_once_either_side_is_deactivated(client, auth_headers, make_entity, path, left, right, parent_key, children):
    a_left, a_right = _pair(make_entity, left, right)
    b_left, b_right = _pair(make_entity, left, right)
    client.post(path, json={left[0]: a_left, right[0]: a_right}, headers=auth_headers)
    client.post(path, json={left[0]: b_left, right[0]: b_right}, headers=auth_headers)
    assert len(client.get(path, headers=auth_headers).json()['data']) == 2

    client.delete(f'{left[1]}/{a_left}', headers=auth_headers)
    rows = client.get(path, headers=auth_headers).json()['data']
    assert [row[left[0]] for row in rows] == [b_left]


@pytest.mark.parametrize('path,left,right,parent_key,children', ASSOCIATIONS, ids=IDS)
def test_show_by_parent(client, auth_headers, make_entity, path, left, right, parent_key, children):
    parent, child = (left, right) if left[0] == parent_key else (right, left)
    parent_id = make_entity(parent[1])['id']
    kept = make_entity(child[1])['id']
    dropped = make_entity(child[1])['id']
    for child_id in (kept, dropped):
        r = client.post(path, json={parent[0]: parent_id, child[0]: child_id}, headers=auth_headers)
        assert r.status_code == 201
    client.delete(f'{child[1]}/{dropped}', headers=auth_headers)

    r = client.get(f'{path}/{parent_id}', headers=auth_headers)
    assert r.status_code == 200
    data = r.json()['data']
    assert isinstance(data[parent[0][:-3]], str)
    assert [row[child[0]] for row in data[children]] == [kept]
    assert data[children][0][child[0][:-3]]['id'] == kept


@pytest.mark.parametrize('path,left,right,parent_key,children', ASSOCIATIONS, ids=IDS)
def test_show_by_parent_not_found_cases(client, auth_headers, make_entity, path, left, right, parent_key, children):
    parent = left if left[0] == parent_key else right
    parent_id = make_entity(parent[1])['id']
    # active parent, nothing linked
    assert client.get(f'{path}/{parent_id}', headers=auth_headers).status_code == 404
    client.delete(f'{parent[1]}/{parent_id}', headers=auth_headers)
    assert client.get(f'{path}/{parent_id}', headers=auth_headers).status_code == 404
    assert client.get(f'{path}/9999', headers=auth_headers).status_code == 404


@pytest.mark.parametrize('path,left,right,parent_key,children', ASSOCIATIONS, ids=IDS)
def test_update_checks_duplicates_excluding_self(client, auth_headers, make_entity, path, left, right, parent_key, children):
    a_left, a_right = _pair(make_entity, left, right)
    b_left, b_right = _pair(make_entity, left, right)
    a = client.post(path, json={left[0]: a_left, right[0]: a_right}, headers=auth_headers).json()['data']
    client.post(path, json={left[0]: b_left, right[0]: b_right}, headers=auth_headers)

    same = client.put(f"{path}/{a['id']}", json={left[0]: a_left, right[0]: a_right}, headers=auth_headers)
    assert same.status_code == 200

    clash = client.put(f"{path}/{a['id']}", json={right[0]: b_right, left[0]: b_left}, headers=auth_headers)
    assert clash.status_code == 409

    moved = client.put(f"{path}/{a['id']}", json={right[0]: b_right}, headers=auth_headers)
    assert moved.status_code == 200
    assert moved.json()['data'][right[0]] == b_right
    assert moved.json()['data'][left[0]] == a_left


@pytest.mark.parametrize('path,left,right,parent_key,children', ASSOCIATIONS, ids=IDS)
def test_update_rejects_missing_references_and_rows(client, auth_headers, make_entity, path, left, right, parent_key, children):
    left_id, right_id = _pair(make_entity, left, right)
    a = client.post(path, json={left[0]: left_id, right[0]: right_id}, headers=auth_headers).json()['data']
    r = client.put(f"{path}/{a['id']}", json={left[0]: 999}, headers=auth_headers)
    assert r.status_code == 400
    assert left[0] in r.json()['errors']
    assert client.put(f'{path}/9999', json={}, headers=auth_headers).status_code == 404


@pytest.mark.parametrize('path,left,right,parent_key,children', ASSOCIATIONS, ids=IDS)
def test_keys_outside_the_id_range_are_rejected(client, auth_headers, make_entity, path, left, right, parent_key, children):
    left_id, right_id = _pair(make_entity, left, right)
    r = client.post(path, json={left[0]: left_id, right[0]: 10**20}, headers=auth_headers)
    assert r.status_code == 400
    assert list(r.json()['errors']) == [right[0]]

    a = client.post(path, json={left[0]: left_id, right[0]: right_id}, headers=auth_headers).json()['data']
    r = client.put(f"{path}/{a['id']}", json={left[0]: 0}, headers=auth_headers)
    assert r.status_code == 400
    assert list(r.json()['errors']) == [left[0]]

    huge = '99999999999999999999'
    assert client.get(f'{path}/{huge}', headers=auth_headers).status_code == 400
    assert client.put(f'{path}/{huge}', json={}, headers=auth_headers).status_code == 400
    assert client.delete(f'{path}/{huge}', headers=auth_headers).status_code == 400


@pytest.mark.parametrize('path,left,right,parent_key,children', ASSOCIATIONS, ids=IDS)
def test_update_rejects_explicit_null(client, auth_headers, make_entity, path, left, right, parent_key, children):
    left_id, right_id = _pair(make_entity, left, right)
    a = client.post(path, json={left[0]: left_id, right[0]: right_id}, headers=auth_headers).json()['data']
    r = client.put(f"{path}/{a['id']}", json={right[0]: None}, headers=auth_headers)
    assert r.status_code == 400
    assert list(r.json()['errors']) == [right[0]]
    rows = client.get(path, headers=auth_headers).json()['data']
    assert rows[0][right[0]] == right_id


@pytest.mark.parametrize('path,left,right,parent_key,children', ASSOCIATIONS, ids=IDS)
def test_patch_is_not_allowed(client, auth_headers, path, left, right, parent_key, children):
    for body in (None, {}, {left[0]: 1, right[0]: 1}):
        r = client.patch(f'{path}/1', json=body, headers=auth_headers)
        assert r.status_code == 405


@pytest.mark.parametrize('path,left,right,parent_key,children', ASSOCIATIONS, ids=IDS)
def test_delete_is_hard(client, auth_headers, make_entity, path, left, right, parent_key, children):
    left_id, right_id = _pair(make_entity, left, right)
    a = client.post(path, json={left[0]: left_id, right[0]: right_id}, headers=auth_headers).json()['data']
    r = client.delete(f"{path}/{a['id']}", headers=auth_headers)
    assert r.status_code == 200
    assert r.json()['data']['id'] == a['id']
    assert r.json()['data']['deleted_at']
    assert client.delete(f"{path}/{a['id']}", headers=auth_headers).status_code == 404
    # the pair can be created again once the row is gone
    again = client.post(path, json={left[0]: left_id, right[0]: right_id}, headers=auth_headers)
    assert again.status_code == 201


@pytest.mark.parametrize('path', IDS)
def test_association_routes_require_token(client, path):
    assert client.get(path).status_code == 401
    assert client.post(path, json={}).status_code == 401
