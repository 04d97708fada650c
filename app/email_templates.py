"""
MJML Email Templates
Transactional e-mails sent to bakery team members
"""

from typing import Optional

# Bakery theme colors - warm rose/cream scheme
THEME = {
    "primary": "#e11d48",
    "primary_dark": "#be123c",
    "primary_light": "#ffe4e6",
    "background": "#fdf8f3",
    "card_bg": "#ffffff",
    "text_primary": "#1c1917",
    "text_secondary": "#44403c",
    "text_muted": "#78716c",
    "border": "#e7e5e4",
}

ROLE_LABELS = {
    "OWNER": "Propietario",
    "ADMIN": "Administrador",
    "EDITOR": "Editor",
}


def get_base_template(
    title: str,
    preview_text: str,
    content_sections: str,
    cta_url: Optional[str] = None,
    cta_label: Optional[str] = None,
) -> str:
    """Base MJML template wrapper for all emails"""

    cta_section = ""
    if cta_url and cta_label:
        cta_section = f"""
        <mj-section background-color="#ffffff" padding="0 40px 32px 40px">
          <mj-column>
            <mj-button
              href="{cta_url}"
              background-color="{THEME['primary']}"
              color="#ffffff"
              font-weight="600"
              border-radius="8px"
              padding="12px 0"
              font-size="16px">
              {cta_label}
            </mj-button>
          </mj-column>
        </mj-section>
        """

    return f"""
    <mjml>
      <mj-head>
        <mj-title>{title}</mj-title>
        <mj-preview>{preview_text}</mj-preview>
        <mj-attributes>
          <mj-all font-family="-apple-system, BlinkMacSystemFont, 'Segoe UI', 'Helvetica Neue', Arial, sans-serif" />
          <mj-text font-size="16px" line-height="1.6" color="{THEME['text_secondary']}" />
        </mj-attributes>
      </mj-head>
      <mj-body background-color="{THEME['background']}">
        <mj-section background-color="#ffffff" padding="32px 40px 0 40px">
          <mj-column>
            <mj-text font-size="22px" font-weight="700" color="{THEME['primary']}" padding="0 0 24px 0">
              Cakely
            </mj-text>
            <mj-divider border-color="{THEME['border']}" border-width="1px" padding="0 0 24px 0" />
          </mj-column>
        </mj-section>

        <mj-section background-color="#ffffff" padding="0 40px 24px 40px">
          <mj-column>
            <mj-text font-size="24px" font-weight="600" color="{THEME['text_primary']}" line-height="1.3" padding="0 0 16px 0">
              {title}
            </mj-text>
            {content_sections}
          </mj-column>
        </mj-section>

        {cta_section}

        <mj-section padding="24px 20px">
          <mj-column>
            <mj-text align="center" font-size="13px" color="{THEME['text_muted']}" padding="0">
              Cakely - gestión para obradores y pastelerías
            </mj-text>
          </mj-column>
        </mj-section>
      </mj-body>
    </mjml>
    """


def invitation_template(
    business_name: str,
    role: str,
    accept_url: str,
    inviter_name: Optional[str] = None,
) -> str:
    """Team invitation MJML template"""
    inviter_text = f"{inviter_name} te ha invitado" if inviter_name else "Has sido invitado"
    role_label = ROLE_LABELS.get(role, role)

    content = f"""
    <mj-text>
      {inviter_text} a unirte al negocio <strong>{business_name}</strong>
      con el rol de <strong>{role_label}</strong>.
    </mj-text>

    <mj-text>
      Para aceptar la invitación, haz clic en el siguiente botón.
    </mj-text>

    <mj-text font-size="14px" color="{THEME['text_muted']}">
      Si no esperabas esta invitación, puedes ignorar este mensaje.
      Este enlace expirará en 7 días.
    </mj-text>

    <mj-text font-size="12px" color="{THEME['text_muted']}" padding-top="16px">
      Si tienes problemas con el botón, copia y pega esta URL en tu navegador: {accept_url}
    </mj-text>
    """

    return get_base_template(
        title="¡Has sido invitado!",
        preview_text=f"Únete a {business_name} en Cakely",
        content_sections=content,
        cta_url=accept_url,
        cta_label="Aceptar invitación",
    )
