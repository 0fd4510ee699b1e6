import pytest

from blesmp.keydistribution import KeyDistribution


def test_default_has_no_keys():
    kd = KeyDistribution()
    assert kd.octet == 0
    assert not any((kd.enc_key, kd.id_key, kd.sign_key, kd.link_key))


def test_id_key_only():
    kd = KeyDistribution()
    kd.id_key = True
    assert kd.octet == 0x02
    assert kd.id_key is True
    assert kd.enc_key is False
    assert kd.sign_key is False
    assert kd.link_key is False


def test_all_bits_from_octet():
    kd = KeyDistribution(0x0F)
    assert kd.enc_key and kd.id_key and kd.sign_key and kd.link_key


@pytest.mark.parametrize("name", ["enc_key", "id_key", "sign_key", "link_key"])
def test_round_trip(name):
    kd = KeyDistribution()
    setattr(kd, name, True)
    assert getattr(kd, name) is True
    setattr(kd, name, False)
    assert getattr(kd, name) is False
    assert kd.octet == 0


def test_clear_keeps_other_bits():
    kd = KeyDistribution(0x0F)
    kd.sign_key = False
    assert kd.sign_key is False
    assert kd.enc_key and kd.id_key and kd.link_key
    kd.sign_key = True
    assert kd.octet == 0x0F


def test_out_of_range():
    with pytest.raises(ValueError):
        KeyDistribution(256)