"""
Document Extraction using Gemini

DESIGN DECISION: Receipts and payslips are read by a multimodal Gemini
model because:
1. One call returns STRUCTURED data (amount, date, merchant, items)
2. It normalizes messy receipt abbreviations ("WW FC MILK" -> "Full Cream Milk")
3. It handles both photos and PDFs

This service handles:
1. Sending the document bytes with a type-specific prompt
2. Parsing the JSON response
3. Converting it to our ExtractedDocument model

CRITICAL: The result is a PROPOSAL. It is never written to the ledger
without the user reviewing the resulting draft.
"""

import json
from datetime import date
from typing import Any, Optional

import google.generativeai as genai
from pydantic import ValidationError
from tenacity import retry, stop_after_attempt, wait_exponential

from pocket_ledger.config import GeminiSettings, get_settings
from pocket_ledger.models.category import ExpenseCategory, IncomeCategory
from pocket_ledger.models.document import ExtractedDocument
from pocket_ledger.models.transaction import TransactionType


class ExtractionError(Exception):
    """Base exception for extraction errors."""
    pass


class ExtractionFailedError(ExtractionError):
    """Failed to extract data from document."""
    pass


INCOME_HINT = (
    "Look for 'Net Pay' (this is the amount), 'PAYG Tax' or 'Withholding' "
    "(this is tax), and 'Superannuation' or 'Super' (this is superannuation)."
)
EXPENSE_HINT = (
    "Look for 'Total', 'Amount Due'. Also, list individual line items if "
    "visible (e.g., Milk, Eggs)."
)


def build_extraction_prompt(transaction_type: TransactionType, today: Optional[date] = None) -> str:
    """Prompt for one document, tailored to the kind of record being added."""
    is_income = transaction_type == TransactionType.INCOME
    categories = IncomeCategory if is_income else ExpenseCategory
    doc_type = (
        "Payslip, Bank Statement, or Invoice" if is_income
        else "Receipt, Tax Invoice, or Bill"
    )
    hint = INCOME_HINT if is_income else EXPENSE_HINT
    today = today or date.today()

    return f"""Analyze this document (Image or PDF), which is a {doc_type} from Australia.
Context: The user is adding a new {transaction_type.value.upper()} record. {hint}

Extract the following information in JSON format:
1. "amount": The final transaction amount (number only). For payslips, use the Net Pay (actual money received).
2. "date": The transaction date in ISO format (YYYY-MM-DD). If not found, use {today.isoformat()}.
3. "merchant": The name of the merchant, employer, or payer.
4. "category": Choose the SINGLE best fitting category from this list: [{', '.join(c.value for c in categories)}].
5. "items": An array of individual items purchased (only for expenses/receipts). Structure: {{"name": "Generic Item Name", "price": number}}.
6. "tax": (Only for Payslips/Income) The PAYG Tax Withheld amount, if visible. Number only.
7. "superannuation": (Only for Payslips/Income) The Superannuation Guarantee contribution amount, if visible. Number only.

IMPORTANT for "items": Normalize the name to a generic, readable English name (e.g. change "WW FC MILK" to "Full Cream Milk"). Exclude discounts or subtotals."""


def parse_extraction_response(text: Optional[str]) -> ExtractedDocument:
    """
    Parse the model's JSON answer.

    Raises:
        ExtractionFailedError: If the answer is empty, not JSON, or has no usable amount
    """
    if not text or not text.strip():
        raise ExtractionFailedError("Model returned an empty response")

    text = text.strip()
    # Find JSON in response
    start = text.find("{")
    end = text.rfind("}") + 1
    if start < 0 or end <= start:
        raise ExtractionFailedError("Model response contained no JSON object")

    try:
        data: Any = json.loads(text[start:end])
    except json.JSONDecodeError as e:
        raise ExtractionFailedError(f"Model response was not valid JSON: {e}")

    try:
        return ExtractedDocument.model_validate(data)
    except ValidationError as e:
        raise ExtractionFailedError(f"Extracted data is unusable: {e.error_count()} invalid fields")


class GeminiDocumentExtractor:
    """
    Structured extraction of receipts and payslips.

    IMPORTANT BOUNDARIES:
    1. This service ONLY extracts data - it does NOT validate semantically
    2. Failures are raised as ExtractionFailedError, never guessed around
    """

    def __init__(
        self,
        settings: Optional[GeminiSettings] = None,
        model: Optional[Any] = None,
    ):
        self._settings = settings or get_settings().gemini
        self._model = model or self._configure_genai()

    def _configure_genai(self):
        """Configure Google Generative AI."""
        genai.configure(api_key=self._settings.api_key)
        return genai.GenerativeModel(
            model_name=self._settings.model_name,
            generation_config={
                "temperature": self._settings.temperature,
                "max_output_tokens": self._settings.max_tokens,
                "response_mime_type": "application/json",
            }
        )

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    async def _generate(self, document: bytes, mime_type: str, prompt: str) -> Optional[str]:
        response = await self._model.generate_content_async(
            [{"mime_type": mime_type, "data": document}, prompt]
        )
        return response.text

    async def extract(
        self,
        document: bytes,
        mime_type: str,
        transaction_type: TransactionType,
    ) -> ExtractedDocument:
        """
        Extract transaction data from a document.

        Args:
            document: Raw image or PDF bytes
            mime_type: e.g. "image/jpeg" or "application/pdf"
            transaction_type: Whether the user is adding an expense or income

        Returns:
            ExtractedDocument with the proposed values

        Raises:
            ExtractionFailedError: If the model call fails or returns nothing usable
        """
        if not document:
            raise ExtractionFailedError("Document is empty")

        prompt = build_extraction_prompt(transaction_type)
        try:
            text = await self._generate(document, mime_type, prompt)
        except Exception as e:
            raise ExtractionFailedError(f"Gemini request failed: {e}")

        return parse_extraction_response(text)
