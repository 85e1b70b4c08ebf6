import threading

import pytest

from facerec.runtime.executors import InlineExecutor, PoolExecutor, SerialExecutor, ThreadOwner


def test_inline_runs_immediately():
    seen = []
    InlineExecutor().execute(seen.append, 1)
    assert seen == [1]


def test_serial_runs_in_submission_order_on_drain():
    executor = SerialExecutor()
    seen = []
    for value in range(3):
        executor.execute(seen.append, value)
    assert seen == []
    assert executor.run_pending() == 3
    assert seen == [0, 1, 2]


def test_pool_posts_back_to_serial():
    main = SerialExecutor()
    pool = PoolExecutor(max_workers=2)
    results = []
    for value in range(4):
        pool.execute(main.execute, results.append, value)
    pool.shutdown(wait=True)
    main.run_pending()
    assert sorted(results) == [0, 1, 2, 3]


def test_run_until_stops_when_done():
    executor = SerialExecutor()
    seen = []
    executor.execute(seen.append, "a")
    executor.run_until(lambda: len(seen) >= 1, poll_interval=0.01)
    assert seen == ["a"]


def test_thread_owner_pins_first_thread():
    owner = ThreadOwner("thing")
    owner.check()
    failures = []

    def _touch():
        try:
            owner.check()
        except RuntimeError as exc:
            failures.append(str(exc))

    worker = threading.Thread(target=_touch)
    worker.start()
    worker.join()
    assert failures == ["thing accessed off its owning thread"]

    owner.release()
    worker = threading.Thread(target=owner.check)
    worker.start()
    worker.join()
    with pytest.raises(RuntimeError):
        owner.check()
