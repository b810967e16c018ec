"""Catalog of connectors known to the playground.

Only a subset of these are fully configured with real credentials (see
`connops.core.auth.is_available_connector`); the rest run on demo keys and
mocked data.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Connector:
    """A third-party system reachable through the connector API."""

    id: str
    label: str


DEFAULT_CONNECTOR_ID = "hubspot"

_CONNECTORS: tuple[tuple[str, str], ...] = (
    ("salesforce", "Salesforce"),
    ("hubspot", "HubSpot"),
    ("pipedrive", "Pipedrive"),
    ("gong", "Gong"),
    ("aircall", "Aircall"),
    ("dialpad", "Dialpad"),
    ("accelo", "Accelo"),
    ("acuity-scheduling", "Acuity Scheduling"),
    ("airtable", "Airtable"),
    ("anthropic", "Anthropic"),
    ("asana", "Asana"),
    ("affinity", "Affinity"),
    ("attio", "Attio"),
    ("blackbaud", "Blackbaud"),
    ("buildium", "Buildium"),
    ("builtwith", "BuiltWith"),
    ("clickup", "ClickUp"),
    ("close", "Close"),
    ("connectwise-psa", "ConnectWise PSA"),
    ("copper", "Copper"),
    ("e-conomic", "e-conomic"),
    ("exact-online", "Exact Online"),
    ("firefish", "Firefish"),
    ("freshbooks", "FreshBooks"),
    ("freshsales", "Freshsales"),
    ("front", "Front"),
    ("gainsight-cc", "Gainsight CC"),
    ("github", "GitHub"),
    ("gitlab", "GitLab"),
    ("holded", "Holded"),
    ("insightly", "Insightly"),
    ("intercom", "Intercom"),
    ("intuit", "Intuit"),
    ("jira", "Jira"),
    ("jira-data-center", "Jira Data Center"),
    ("kustomer", "Kustomer"),
    ("linear", "Linear"),
    ("luma", "Luma"),
    ("manatal", "Manatal"),
    ("medallia", "Medallia"),
    ("monday", "Monday"),
    ("netsuite", "NetSuite"),
    ("pennylane", "Pennylane"),
    ("quickbooks", "Quickbooks"),
    ("sage", "Sage"),
    ("teamwork", "Teamwork"),
    ("ticktick", "TickTick"),
    ("zoho-desk", "Zoho Desk"),
    ("zoominfo", "ZoomInfo"),
    ("cal-com", "Cal.com"),
    ("calendly", "Calendly"),
    ("coda", "Coda"),
    ("code-climate", "Code Climate"),
    ("envoy", "Envoy"),
    ("expensify", "Expensify"),
    ("figjam", "FigJam"),
    ("figma", "Figma"),
    ("fireflies", "Fireflies"),
    ("google-calendar", "Google Calendar"),
    ("google-docs", "Google Docs"),
    ("google-mail", "Google Mail"),
    ("google-sheet", "Google Sheet"),
    ("grain", "Grain"),
    ("harvest", "Harvest"),
    ("keeper-scim", "Keeper(SCIM)"),
    ("klipfolio", "Klipfolio"),
    ("lastpass", "LastPass"),
    ("lessonly", "Lessonly"),
    ("make", "Make"),
    ("microsoft-power-bi", "Microsoft Power BI"),
    ("microsoft-teams", "Microsoft Teams"),
    ("mindbody", "Mindbody"),
    ("miro", "Miro"),
    ("notion", "Notion"),
    ("one-note", "One Note"),
    ("openai", "OpenAI"),
    ("perimeter81", "Perimeter81"),
    ("perplexity", "Perplexity"),
    ("pingboard", "Pingboard"),
    ("pivotal-tracker", "Pivotal Tracker"),
    ("productboard", "Productboard"),
    ("servicem8", "ServiceM8"),
    ("servicenow", "ServiceNow"),
    ("shortcut", "Shortcut"),
    ("slack", "Slack"),
    ("tsheets", "TSheets"),
    ("wrike", "Wrike"),
    ("zoho-mail", "Zoho Mail"),
    ("fal-ai", "fal.ai"),
    ("workable", "Workable"),
    ("lever", "Lever"),
    ("greenhouse", "Greenhouse"),
    ("ashby", "Ashby"),
)

CONNECTORS: tuple[Connector, ...] = tuple(
    Connector(id=cid, label=label) for cid, label in _CONNECTORS
)


def connector_name(connector_id: str) -> str:
    """Return the display label of a connector, or the id if unknown."""
    for connector in CONNECTORS:
        if connector.id == connector_id:
            return connector.label
    return connector_id


def find_connector(connector_id: str) -> Connector | None:
    """Return the catalog entry for a connector id, if any."""
    return next((c for c in CONNECTORS if c.id == connector_id), None)
