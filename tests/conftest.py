import os
import pytest
import datetime as dt
from deal_doctor.config import get_settings
from deal_doctor.models.deal import Deal, DealStage, Stakeholder, StakeholderRole
from deal_doctor.models.diagnosis import DealSignals

os.environ.setdefault("ENVIRONMENT", "test")


@pytest.fixture(autouse=True)
def fresh_settings(monkeypatch):
    """Every test starts from environment defaults without an OpenAI key."""
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def empty_deal():
    """Discovery-stage deal with no contacts and no notes."""
    return Deal(company_name="Blank Co", stage=DealStage.DISCOVERY, notes="")


@pytest.fixture
def healthy_deal():
    """A deal that trips no rule at all."""
    return Deal(
        company_name="Northwind",
        deal_value=90000,
        stage=DealStage.NEGOTIATION,
        days_inactive=2,
        stakeholders=[
            Stakeholder(name="Dana Cole", title="CFO", role=StakeholderRole.ECONOMIC_BUYER),
            Stakeholder(name="Raj Patel", title="Head of Finance", role=StakeholderRole.CHAMPION),
            Stakeholder(name="Ola Berg", title="IT Director", role=StakeholderRole.TECHNICAL_BUYER),
        ],
        notes=(
            "Discovery done, pain point documented. Next step scheduled. "
            "Budget approved, ROI case with savings metrics. Shared new case study. "
            "Timeline: go-live this quarter, risk of falling behind competitor."
        ),
    )


@pytest.fixture
def single_contact_deal():
    """Acme-style proposal: one champion, 18 days quiet, thin notes."""
    return Deal(
        company_name="Acme Corp",
        deal_value=75000,
        stage=DealStage.PROPOSAL,
        days_inactive=18,
        stakeholders=[
            Stakeholder(name="Sarah Chen", title="Product Manager",
                        email="sarah@acme.com", role=StakeholderRole.CHAMPION),
        ],
        notes="Had a great demo. Sarah loved the integration features. Waiting for internal discussion.",
        created_at=dt.datetime(2025, 12, 1, tzinfo=dt.UTC),
    )


@pytest.fixture
def make_signals():
    """Builds DealSignals where every boolean is true unless overridden."""
    def _make(**overrides):
        values = dict(
            contact_count=3,
            decision_maker_present=True,
            cross_functional_contact_present=True,
            days_since_last_activity=0,
            days_in_stage=0,
            next_step_scheduled=True,
            budget_discussed=True,
            metrics_mentioned=True,
            new_value_sent_post_demo=True,
            timeline_defined=True,
            consequence_of_inaction_defined=True,
            discovery_summary_present=True,
        )
        values.update(overrides)
        return DealSignals(**values)
    return _make
