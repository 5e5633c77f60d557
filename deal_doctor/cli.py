"""
CLI Runner for the Diagnosis Engine
Diagnoses the sample pipeline and optionally runs a playbook for one deal.

Usage:
    deal-doctor                      # diagnose every sample deal
    deal-doctor playbook "Acme Corp" # run the recommended playbook (template drafts)
"""
import asyncio
import sys

from loguru import logger

from deal_doctor.engine import diagnose_all
from deal_doctor.models.deal import Deal
from deal_doctor.services.deal_store import InMemoryDealStore, get_deal_store
from deal_doctor.services.playbook_executor import PlaybookExecutor, TemplateDraftGenerator
from deal_doctor.services.playbooks import QUALITY_BARS
from deal_doctor.utils.observability import configure_logging


def print_deal(deal: Deal):
    print(f"\n{'─' * 70}")
    print(f"🏢 {deal.company_name} | {deal.stage_label} | ${deal.deal_value:,.0f} | "
          f"{deal.days_inactive} days inactive")
    print(f"{'─' * 70}")

    diagnoses = diagnose_all(deal)
    if not diagnoses:
        print("✅ No stall patterns detected")
        return

    for rank, diagnosis in enumerate(diagnoses):
        heading = "Primary" if rank == 0 else "Secondary"
        print(f"\n{'🩺' if rank == 0 else '  '} {heading}: {diagnosis.label} "
              f"[{diagnosis.severity}] {diagnosis.confidence:.0%} confidence")
        print(f"   Rules: {', '.join(diagnosis.matched_rules)}")
        for item in diagnosis.evidence:
            print(f"   - {item}")
        if rank == 0:
            print(f"\n   {diagnosis.explanation}")

    print("\n📋 Recommended actions:")
    for action in deal.recommended_actions:
        print(f"   [{action.expected_impact}] {action.action} ({action.time_to_execute}) "
              f"- {action.reason}")


def run_pipeline(store: InMemoryDealStore):
    print("\n" + "=" * 70)
    print("🩺 Deal Doctor - Pipeline Diagnosis")
    print("=" * 70)

    for deal in store.list_deals():
        print_deal(deal)

    print()


async def run_playbook(store: InMemoryDealStore, company_name: str) -> int:
    deal = next(
        (d for d in store.list_deals() if d.company_name.lower() == company_name.lower()),
        None,
    )
    if deal is None:
        logger.error(f"No deal found for company: {company_name}")
        return 1
    if deal.diagnosis is None:
        print(f"✅ {deal.company_name} has no diagnosis; nothing to execute")
        return 0

    executor = PlaybookExecutor(generator=TemplateDraftGenerator())
    output = await executor.execute(deal, deal.diagnosis)

    print(f"\n▶️  Playbook: {output.playbook} ({output.output_type})\n")
    print(f"Aim for: {', '.join(QUALITY_BARS[output.playbook].good)}\n")
    print(output.content)
    for warning in output.warnings:
        print(f"\n⚠️  {warning}")
    return 0


def main(argv: list[str] | None = None) -> int:
    argv = sys.argv[1:] if argv is None else argv
    configure_logging()
    store = get_deal_store()

    if argv and argv[0] == "playbook":
        if len(argv) < 2:
            print(__doc__)
            return 2
        return asyncio.run(run_playbook(store, " ".join(argv[1:])))

    run_pipeline(store)
    return 0


if __name__ == "__main__":
    sys.exit(main())
