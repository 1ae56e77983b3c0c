"""
Downloadable audit report for a campaign run.
"""
from typing import Optional

from campaign_builder.schemas.campaign import CampaignCreateResult, CampaignReport, ReportSummary
from campaign_builder.schemas.lead import ValidationResult


def build_campaign_report(
    campaign_name: str,
    validation: ValidationResult,
    campaign: Optional[CampaignCreateResult] = None
) -> CampaignReport:
    """
    Build the flat report of one run.

    Args:
        campaign_name: Campaign name
        validation: Validation outcome
        campaign: Upload outcome, if the upload was attempted

    Returns:
        CampaignReport: Summary counts, invalid rows and batch results
    """
    summary = validation.summary
    return CampaignReport(
        campaignName=campaign_name,
        campaignId=campaign.campaign_id if campaign else None,
        summary=ReportSummary(
            totalRows=summary.total_rows,
            validLeads=summary.valid_rows,
            invalidLeads=summary.invalid_rows,
            duplicates=summary.duplicate_rows,
        ),
        errors=list(validation.invalid),
        warnings=list(validation.warnings),
        batches=list(campaign.batches) if campaign else [],
    )
