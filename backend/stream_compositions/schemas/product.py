"""Schemas for ingested products.

A product ingestion produces product groups; each group holds one list per
product kind. Every product shares the ``BaseProduct`` fields the
post-ingestion chain needs.
"""

from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class LegalEntityReference(BaseModel):
    """Reference to a legal entity owning a product."""

    model_config = ConfigDict(populate_by_name=True)

    internal_id: Optional[str] = Field(None, alias="internalId")
    external_id: Optional[str] = Field(None, alias="externalId")


class BaseProduct(BaseModel):
    """Fields common to every ingested product."""

    model_config = ConfigDict(populate_by_name=True)

    internal_id: Optional[str] = Field(None, alias="internalId")
    external_id: str = Field(..., alias="externalId")
    product_type_external_id: Optional[str] = Field(None, alias="productTypeExternalId")
    name: Optional[str] = None
    currency: Optional[str] = None
    legal_entities: List[LegalEntityReference] = Field(default_factory=list, alias="legalEntities")


class ProductGroup(BaseModel):
    """Products of one service agreement, grouped by kind."""

    model_config = ConfigDict(populate_by_name=True)

    name: Optional[str] = None
    description: Optional[str] = None
    loans: Optional[List[BaseProduct]] = None
    term_deposits: Optional[List[BaseProduct]] = Field(None, alias="termDeposits")
    current_accounts: Optional[List[BaseProduct]] = Field(None, alias="currentAccounts")
    savings_accounts: Optional[List[BaseProduct]] = Field(None, alias="savingAccounts")
    credit_cards: Optional[List[BaseProduct]] = Field(None, alias="creditCards")
    investment_accounts: Optional[List[BaseProduct]] = Field(None, alias="investmentAccounts")
    custom_products: Optional[List[BaseProduct]] = Field(None, alias="customProducts")

    def product_lists(self) -> List[Optional[List[BaseProduct]]]:
        """Return the product lists in the order the transaction chain visits them."""
        return [
            self.loans,
            self.term_deposits,
            self.current_accounts,
            self.savings_accounts,
            self.credit_cards,
            self.investment_accounts,
            self.custom_products,
        ]


class ProductIngestResponse(BaseModel):
    """Result of a completed product ingestion."""

    model_config = ConfigDict(populate_by_name=True)

    service_agreement_external_id: Optional[str] = Field(None, alias="serviceAgreementExternalId")
    service_agreement_internal_id: Optional[str] = Field(None, alias="serviceAgreementInternalId")
    product_groups: Optional[List[ProductGroup]] = Field(None, alias="productGroups")
    additions: Optional[Dict[str, str]] = None
