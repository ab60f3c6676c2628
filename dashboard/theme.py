"""
MemberHub — Design System & Theme

Light membership-portal theme. Each organization can set a
primary_color; everything accent-coloured follows it.

Provides CSS injection, the colour palette, status badge variants and
small HTML components. The HTML helpers are pure functions so they can
be tested without a running Streamlit server.
"""

from __future__ import annotations

from html import escape
from typing import Optional

import streamlit as st

from memberhub.tenancy.models import Organization

# ---------------------------------------------------------------------------
# Color Palette
# ---------------------------------------------------------------------------

COLORS = {
    # Backgrounds
    "bg_primary": "#F8FAFC",
    "bg_card": "#FFFFFF",
    "bg_muted": "#F1F5F9",

    # Accents
    "accent_primary": "#2563EB",   # Default brand blue
    "accent_soft": "rgba(37, 99, 235, 0.10)",

    # Status
    "status_green": "#16A34A",     # Active / success
    "status_yellow": "#D97706",    # Pending / warning
    "status_red": "#DC2626",       # Suspended / destructive
    "status_gray": "#64748B",      # Inactive / secondary

    # Text
    "text_primary": "#0F172A",
    "text_secondary": "#475569",
    "text_muted": "#94A3B8",

    # Borders
    "border_default": "#E2E8F0",
}

HEX_DIGITS = set("0123456789abcdefABCDEF")


# ---------------------------------------------------------------------------
# Status Badges
# ---------------------------------------------------------------------------

# Badge variant per user or membership status
STATUS_VARIANTS = {
    "active": "success",
    "pending": "warning",
    "inactive": "secondary",
    "suspended": "destructive",
    "expired": "secondary",
    "cancelled": "destructive",
}

VARIANT_COLORS = {
    "success": COLORS["status_green"],
    "warning": COLORS["status_yellow"],
    "secondary": COLORS["status_gray"],
    "destructive": COLORS["status_red"],
}


def status_variant(status: str) -> str:
    """Badge variant for a status value; unknown statuses are 'secondary'."""
    return STATUS_VARIANTS.get((status or "").lower(), "secondary")


def status_badge(status: str) -> str:
    """Return HTML for a status badge."""
    variant = status_variant(status)
    label = escape((status or "unknown").upper())
    return f'<span class="mh-badge mh-badge-{variant}">{label}</span>'


# ---------------------------------------------------------------------------
# Organization branding
# ---------------------------------------------------------------------------


def brand_color(organization: Optional[Organization]) -> str:
    """The organization's primary colour if it is a valid hex colour, else the default."""
    color = (organization.primary_color or "").strip() if organization else ""
    digits = color[1:]
    if color.startswith("#") and len(digits) in (3, 6) and set(digits) <= HEX_DIGITS:
        return color
    return COLORS["accent_primary"]


def org_display_name(organization: Optional[Organization]) -> str:
    if organization is None or not organization.name:
        return "Membership Portal"
    return organization.name


def org_initial(organization: Optional[Organization]) -> str:
    """First letter of the organization name, used when there is no logo."""
    return org_display_name(organization)[:1].upper() or "M"


def org_header(organization: Optional[Organization]) -> str:
    """Return HTML for the portal header: logo (or initial) and organization name."""
    name = escape(org_display_name(organization))
    color = brand_color(organization)
    if organization is not None and organization.logo:
        mark = f'<img class="mh-logo" src="{escape(organization.logo, quote=True)}" alt="{name}"/>'
    else:
        mark = (
            f'<div class="mh-logo mh-logo-initial" style="background:{color};">'
            f"{escape(org_initial(organization))}</div>"
        )
    return f'<div class="mh-org-header">{mark}<span class="mh-org-name">{name}</span></div>'


# ---------------------------------------------------------------------------
# CSS Injection
# ---------------------------------------------------------------------------

def inject_theme_css(organization: Optional[Organization] = None) -> None:
    """Inject the portal CSS, using the organization's colour as the accent."""
    accent = brand_color(organization)
    st.markdown(f"""
    <style>
    .stApp {{
        background: {COLORS["bg_primary"]};
        color: {COLORS["text_primary"]};
    }}

    div[data-testid="stMetric"] {{
        background: {COLORS["bg_card"]};
        border: 1px solid {COLORS["border_default"]};
        border-radius: 12px;
        padding: 16px 20px;
    }}

    .stButton > button[kind="primary"] {{
        background: {accent};
        border-color: {accent};
        color: white;
    }}

    .mh-org-header {{
        display: flex;
        align-items: center;
        gap: 12px;
        margin-bottom: 8px;
    }}

    .mh-logo {{
        width: 40px;
        height: 40px;
        border-radius: 8px;
        object-fit: cover;
    }}

    .mh-logo-initial {{
        display: flex;
        align-items: center;
        justify-content: center;
        color: white;
        font-weight: 700;
        font-size: 1.2rem;
    }}

    .mh-org-name {{
        font-size: 1.25rem;
        font-weight: 600;
    }}

    .mh-badge {{
        display: inline-block;
        padding: 2px 10px;
        border-radius: 999px;
        font-size: 0.7rem;
        font-weight: 600;
        letter-spacing: 0.04em;
    }}
    .mh-badge-success {{ background: rgba(22, 163, 74, 0.12); color: {VARIANT_COLORS["success"]}; }}
    .mh-badge-warning {{ background: rgba(217, 119, 6, 0.12); color: {VARIANT_COLORS["warning"]}; }}
    .mh-badge-secondary {{ background: rgba(100, 116, 139, 0.12); color: {VARIANT_COLORS["secondary"]}; }}
    .mh-badge-destructive {{ background: rgba(220, 38, 38, 0.12); color: {VARIANT_COLORS["destructive"]}; }}

    .mh-kpi-card {{
        background: {COLORS["bg_card"]};
        border: 1px solid {COLORS["border_default"]};
        border-radius: 12px;
        padding: 16px 20px;
    }}
    .mh-kpi-label {{
        font-size: 0.75rem;
        text-transform: uppercase;
        letter-spacing: 0.06em;
        color: {COLORS["text_secondary"]};
        font-weight: 600;
    }}
    .mh-kpi-value {{
        font-size: 1.8rem;
        font-weight: 700;
        color: {COLORS["text_primary"]};
    }}
    .mh-kpi-hint {{
        font-size: 0.75rem;
        color: {COLORS["text_muted"]};
    }}

    .mh-page-subtitle {{
        color: {COLORS["text_secondary"]};
        margin-top: -8px;
    }}
    </style>
    """, unsafe_allow_html=True)


# ---------------------------------------------------------------------------
# Reusable Components
# ---------------------------------------------------------------------------

def page_header(title: str, subtitle: str = "") -> None:
    """Render a consistent page header."""
    st.markdown(f"## {title}")
    if subtitle:
        st.markdown(
            f'<p class="mh-page-subtitle">{escape(subtitle)}</p>',
            unsafe_allow_html=True,
        )


def kpi_card(label: str, value: str, hint: str = "") -> str:
    """Return HTML for a KPI card."""
    hint_html = f'<div class="mh-kpi-hint">{escape(hint)}</div>' if hint else ""
    return (
        f'<div class="mh-kpi-card">'
        f'<div class="mh-kpi-label">{escape(label)}</div>'
        f'<div class="mh-kpi-value">{escape(str(value))}</div>'
        f"{hint_html}"
        f"</div>"
    )
