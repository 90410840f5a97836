"""
Personalizacao de mensagens de campanha.

Unico token suportado: {NAME}.
"""
from typing import Optional

from crm.repositories.customer import Customer

NAME_TOKEN = "{NAME}"
FALLBACK_NAME = "Valued Customer"


def render_message(template: Optional[str], customer: Customer, default_template: str) -> str:
    """
    Renderiza a mensagem para um cliente.

    Args:
        template: Template da campanha (vazio usa o default)
        customer: Destinatario
        default_template: Template usado quando a campanha nao tem mensagem

    Returns:
        Mensagem com {NAME} substituido por "first last" ou "Valued Customer"

    Exemplo:
        >>> render_message("Hi {NAME}!", Customer(id="1", tenant_id="t", first_name="Anil"), "")
        'Hi Anil!'
    """
    text = template if template and template.strip() else default_template
    return text.replace(NAME_TOKEN, customer.full_name or FALLBACK_NAME)
