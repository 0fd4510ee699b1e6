import pytest

from blesmp.bitdescriptions import AuthReq, IOCap

LOCAL_AUTHREQ = 0b00101101


def test_local_authreq_flags():
    req = AuthReq(LOCAL_AUTHREQ)
    assert req.bonding is True
    assert req.mitm is True
    assert req.sc is True
    assert req.keypress is False
    assert req.ct2 is True


def test_default_is_empty():
    req = AuthReq()
    assert req.octet == 0
    assert not any((req.bonding, req.mitm, req.sc, req.keypress, req.ct2))


@pytest.mark.parametrize("name", ["bonding", "mitm", "sc", "keypress", "ct2"])
def test_set_and_clear_round_trip(name):
    req = AuthReq()
    setattr(req, name, True)
    assert getattr(req, name) is True
    assert req.octet != 0
    setattr(req, name, False)
    assert getattr(req, name) is False
    assert req.octet == 0


def test_clearing_one_flag_keeps_others():
    req = AuthReq(LOCAL_AUTHREQ)
    req.mitm = False
    assert req.mitm is False
    assert req.bonding and req.sc and req.ct2
    req.mitm = True
    assert req.octet == LOCAL_AUTHREQ


def test_octet_out_of_range():
    with pytest.raises(ValueError):
        AuthReq(0x100)
    with pytest.raises(ValueError):
        AuthReq(-1)


def test_iocap_values():
    assert IOCap.DISPLAY_ONLY == 0x00
    assert IOCap.DISPLAY_YES_NO == 0x01
    assert IOCap.KEYBOARD_ONLY == 0x02
    assert IOCap.NO_INPUT_NO_OUTPUT == 0x03
    assert IOCap.KEYBOARD_DISPLAY == 0x04
    assert IOCap(3) is IOCap.NO_INPUT_NO_OUTPUT