"""
Testes para personalizacao de mensagens.
"""
from crm.repositories.customer import Customer
from crm.services.campaigns.personalization import render_message

DEFAULT = "Hi {NAME}, here's 10% off on your next order!"


def _customer(first=None, last=None):
    return Customer(id="c1", tenant_id="t1", first_name=first, last_name=last)


def test_nome_completo():
    assert render_message(DEFAULT, _customer("Anil", "Kumar"), DEFAULT) == (
        "Hi Anil Kumar, here's 10% off on your next order!"
    )


def test_sem_nome_usa_valued_customer():
    assert render_message(DEFAULT, _customer(), DEFAULT) == (
        "Hi Valued Customer, here's 10% off on your next order!"
    )


def test_so_primeiro_nome_sem_espaco_sobrando():
    assert render_message("Hello {NAME}!", _customer("Anil"), DEFAULT) == "Hello Anil!"


def test_nome_em_branco():
    assert render_message("Hello {NAME}!", _customer("  ", ""), DEFAULT) == "Hello Valued Customer!"


def test_template_vazio_usa_default():
    assert render_message("", _customer("Bea"), DEFAULT).startswith("Hi Bea,")
    assert render_message(None, _customer("Bea"), DEFAULT).startswith("Hi Bea,")


def test_multiplos_tokens():
    assert render_message("{NAME}! {NAME}!", _customer("Bea"), DEFAULT) == "Bea! Bea!"


def test_sem_token():
    assert render_message("Flash sale today", _customer("Bea"), DEFAULT) == "Flash sale today"
