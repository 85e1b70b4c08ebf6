from facerec.pipeline.permission import PermissionGate, PermissionState, StaticPermissionStore


def test_initial_state_read_from_store():
    gate = PermissionGate(StaticPermissionStore(initial=PermissionState.DENIED))
    assert gate.state is PermissionState.NOT_REQUESTED
    assert gate.load() is PermissionState.DENIED


def test_request_grants_and_fires_callbacks():
    store = StaticPermissionStore(answer=True)
    gate = PermissionGate(store)
    granted = []
    gate.on_granted(lambda: granted.append(True))
    gate.load()
    gate.request()
    assert gate.is_granted
    assert granted == [True]
    assert store.prompts == 1


def test_denied_answer_can_be_retried():
    store = StaticPermissionStore(answer=False)
    gate = PermissionGate(store)
    gate.load()
    gate.request()
    assert gate.state is PermissionState.DENIED
    gate.request()
    assert store.prompts == 2


def test_granted_is_terminal():
    store = StaticPermissionStore(initial=PermissionState.GRANTED, answer=False)
    gate = PermissionGate(store)
    changes = []
    gate.on_change(changes.append)
    gate.load()
    gate.request()
    gate._on_result(False)
    assert gate.is_granted
    assert store.prompts == 0
    assert changes == [PermissionState.GRANTED]


def test_load_reads_store_only_once():
    store = StaticPermissionStore(initial=PermissionState.NOT_REQUESTED, answer=True)
    gate = PermissionGate(store)
    gate.load()
    gate.request()
    assert gate.load() is PermissionState.GRANTED
