from kiosk_edge.models import KioskCommand
from kiosk_edge.services.multiview_queue import MultiviewCommandQueue


def mv(type_, timestamp, **payload):
    return KioskCommand.from_dict({"type": type_, "timestamp": timestamp, "payload": payload})


def test_redelivered_command_is_dropped():
    queue = MultiviewCommandQueue()
    add = mv("multiview-add", 100, camera="porch")
    assert queue.push(add) is True
    assert queue.push(mv("multiview-add", 100, camera="porch")) is False
    assert queue.drain() == [add]


def test_distinct_commands_keep_order():
    queue = MultiviewCommandQueue()
    commands = [mv("multiview-add", 1), mv("multiview-remove", 1), mv("multiview-clear", 2)]
    for command in commands:
        queue.push(command)
    assert queue.drain() == commands
    assert len(queue) == 0


def test_drained_commands_are_still_remembered():
    queue = MultiviewCommandQueue()
    queue.push(mv("multiview-set", 5))
    queue.drain()
    assert queue.push(mv("multiview-set", 5)) is False


def test_listeners_see_accepted_commands_only():
    queue = MultiviewCommandQueue()
    seen = []
    queue.subscribe(seen.append)
    queue.push(mv("multiview-add", 1))
    queue.push(mv("multiview-add", 1))
    assert len(seen) == 1


def test_memory_is_bounded():
    queue = MultiviewCommandQueue(max_pending=2, remember=2)
    for ts in range(4):
        queue.push(mv("multiview-add", ts))
    assert [c.timestamp for c in queue.drain()] == [2, 3]
    # oldest identity was forgotten
    assert queue.push(mv("multiview-add", 0)) is True
