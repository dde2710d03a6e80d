import socket
import threading

import pytest

from conckit.cube_root import (
    cube_root,
    handle_connection,
    main,
    read_message,
    run_client,
    serve,
    str_to_int32,
    write_message,
)


def test_str_to_int32_accepts_integers():
    assert str_to_int32("123") == 123
    assert str_to_int32("-2147483648") == -2147483648
    assert str_to_int32("+7") == 7


@pytest.mark.parametrize("text", ["abc", "12a", "", " 5", "99999999999999999999"])
def test_str_to_int32_rejects_non_integers(text):
    with pytest.raises(ValueError) as info:
        str_to_int32(text)
    assert str(info.value) == f'"{text}" is not integer'


def test_str_to_int32_rejects_out_of_range():
    with pytest.raises(ValueError, match="^2147483648 is not 32-bit integer$"):
        str_to_int32("2147483648")


@pytest.mark.parametrize("value", [1, 8, 27, 1000, 2147483647, 5, 123456])
def test_cube_root_inverts_cubing(value):
    assert cube_root(value) ** 3 == pytest.approx(value)


def test_cube_root_is_odd():
    assert cube_root(-27) == -cube_root(27)
    assert cube_root(0) == 0.0


def test_message_round_trip():
    left, right = socket.socketpair()
    with left, right:
        assert write_message(left, "hello") == len("hello") + 1
        write_message(left, "")
        assert read_message(right) == "hello"
        assert read_message(right) == ""


def test_read_message_raises_on_close():
    left, right = socket.socketpair()
    with right:
        left.sendall(b"partial")
        left.close()
        with pytest.raises(EOFError):
            read_message(right)


def test_handle_connection_answers_and_reports_errors():
    client, server_side = socket.socketpair()
    worker = threading.Thread(target=handle_connection, args=(server_side,), daemon=True)
    worker.start()
    with client:
        client.settimeout(5)
        write_message(client, "27")
        answer = read_message(client)
        prefix = "The cube root of 27 is "
        assert answer.startswith(prefix)
        assert float(answer[len(prefix):].rstrip(".")) == pytest.approx(cube_root(27))
        write_message(client, "abc")
        assert read_message(client) == '"abc" is not integer'
    worker.join(5)
    assert not worker.is_alive()


def test_serve_handles_clients_until_closed():
    listener = socket.create_server(("127.0.0.1", 0))
    worker = threading.Thread(target=serve, args=(listener,), daemon=True)
    worker.start()
    with socket.create_connection(listener.getsockname()[:2], 5) as conn:
        write_message(conn, "8")
        assert read_message(conn).startswith("The cube root of 8 is ")
    listener.close()
    worker.join(3)
    assert not worker.is_alive()


def test_run_client_without_server_returns_nothing():
    probe = socket.create_server(("127.0.0.1", 0))
    host, port = probe.getsockname()[:2]
    probe.close()
    assert run_client(7, f"{host}:{port}") == []


def test_run_client_collects_valid_responses():
    listener = socket.create_server(("127.0.0.1", 0))
    threading.Thread(target=serve, args=(listener,), daemon=True).start()
    host, port = listener.getsockname()[:2]
    try:
        responses = run_client(1, f"{host}:{port}")
    finally:
        listener.close()
    assert len(responses) <= 5
    assert all(r.startswith("The cube root of ") for r in responses)


def test_main_runs_server_and_client(capsys):
    assert main(["--address", "127.0.0.1:0"]) == 0
    out = capsys.readouterr().out
    assert "Server[0]: Got listener for the server." in out
    assert "Client[1]: Connected to server." in out


def test_main_rejects_bad_address(capsys):
    assert main(["--address", "nonsense"]) == 1
    assert "Listen Error" in capsys.readouterr().out