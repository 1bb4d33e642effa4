import threading

from lighthouse_calib.logic.dispatcher import Dispatcher


def test_handlers_run_in_order_on_one_thread():
    seen = []
    threads = set()

    def handler(i):
        seen.append(i)
        threads.add(threading.get_ident())

    d = Dispatcher()
    d.start()
    for i in range(50):
        d.post(handler, i)
    d.join()
    d.stop()
    assert seen == list(range(50))
    assert len(threads) == 1
    assert threading.get_ident() not in threads


def test_failing_handler_does_not_stop_the_loop():
    seen = []

    def boom():
        raise RuntimeError("bad message")

    d = Dispatcher()
    d.start()
    d.post(boom)
    d.post(seen.append, "after")
    d.join()
    d.stop()
    assert seen == ["after"]
    assert not d.running
