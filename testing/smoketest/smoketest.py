from qjsserialize import dumps, loads


def main() -> None:
    msg = {"msg": "Don't let the smoke out!", "count": 1}
    msg_out = loads(dumps(msg))
    if msg != msg_out:
        raise AssertionError("Smoke test failed")
    print(msg_out["msg"])


if __name__ == "__main__":
    main()
