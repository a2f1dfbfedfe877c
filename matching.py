# matching.py
import json
import logging
import re
from abc import ABC, abstractmethod
from typing import List, Optional, Sequence

from google import genai
from google.genai import types
from pydantic import ValidationError

from config import DEFAULT_MODEL
from models import Client, MatchResult, PortfolioCompany

logger = logging.getLogger(__name__)

FALLBACK_LINE_LIMIT = 30

# ---------- Prompts ----------
PORTFOLIO_PROMPT = """
Find the comprehensive list of portfolio companies for the Venture Capital fund "{fund_name}".
Use Google Search to find their official portfolio page, Crunchbase listing, or reputable news sources.
List ALL active portfolio companies you can find, not just the most recent ones.
Try to capture the full list.
"""

PORTFOLIO_SYSTEM_INSTRUCTION = """You are a research assistant. You must output the list of companies in a valid JSON array format at the end of your response.
Example format: [{"name": "Company A", "description": "Short description"}, {"name": "Company B", "url": "https://b.example"}]
Do not use markdown code blocks like ```json. Just the raw JSON array string."""

MATCH_PROMPT = """
I have a list of my Clients and a list of Portfolio Companies for the fund "{fund_name}".

My Clients: [{client_names}]

Portfolio Companies: [{portfolio_names}]

Task: Identify which of my Clients are likely the same entity as a Portfolio Company using advanced fuzzy matching.

CRITICAL MATCHING RULES:
1. **Fuzzy Name Matching**: Detect matches despite misspellings, typos, or character swaps.
   - Example: "Goolge" == "Google", "Sofware" == "Software", "Nvidiaa" == "Nvidia".
2. **Legal Suffix Handling**: Completely ignore legal entity suffixes (Inc, Ltd, GmbH, L.P., Corp, etc.) when comparing.
   - Example: "Wiz Inc." == "Wiz", "Monday Ltd" == "monday.com", "Apple GmbH" == "Apple".
3. **Acronyms & Punctuation**: You MUST match variations with and without dots/hyphens/spaces.
   - Example: "I.v.i.c" == "IVIC", "A.B.C" == "ABC", "T-Mobile" == "TMobile".
4. **Cross-Language Matching**: Handle Hebrew/English equivalents and transliterations.
   - Example: "וויז" == "Wiz", "רפאל" == "Rafael".
5. **Brand vs Legal**: Match subsidiary or legal names to the main brand name.
   - Example: "Facebook Israel Ltd" == "Meta", "Google Israel" == "Alphabet".

If there is a strong phonetic similarity or clear corporate relationship, mark it as a match.

Return a JSON array of matches.
"""

MATCH_SCHEMA = types.Schema(
    type=types.Type.ARRAY,
    items=types.Schema(
        type=types.Type.OBJECT,
        properties={
            "clientName": types.Schema(type=types.Type.STRING),
            "portfolioCompany": types.Schema(type=types.Type.STRING),
            "confidence": types.Schema(type=types.Type.STRING, enum=["High", "Medium", "Low"]),
            "reasoning": types.Schema(type=types.Type.STRING),
        },
        required=["clientName", "portfolioCompany", "confidence", "reasoning"],
    ),
)


# ---------- Response parsing ----------
def parse_loose_json_array(text: str) -> Optional[list]:
    """Decode the span from the first "[" to the last "]" of free text.

    Best effort: returns None when there is no such span, when it is not valid
    JSON, or when it decodes to something other than a list.
    """
    match = re.search(r"\[.*\]", text or "", flags=re.DOTALL)
    if not match:
        return None
    try:
        parsed = json.loads(match.group(0))
    except ValueError:
        return None
    return parsed if isinstance(parsed, list) else None


def _to_company(item) -> PortfolioCompany:
    if not isinstance(item, dict):
        return PortfolioCompany(name=str(item).strip() or "Unknown")
    name = item.get("name")
    description = item.get("description")
    url = item.get("url")
    return PortfolioCompany(
        name=str(name).strip() if name and str(name).strip() else "Unknown",
        description=str(description) if description else None,
        url=str(url) if url else None,
    )


def parse_portfolio_text(text: str) -> List[PortfolioCompany]:
    items = parse_loose_json_array(text)
    if items is not None:
        return [_to_company(item) for item in items]

    # not JSON: treat the response as a plain list, one company per line
    logger.info("No JSON array in portfolio response, falling back to line parsing")
    lines = [
        line.strip() for line in (text or "").split("\n")
        if line.strip() and "[" not in line and "]" not in line
    ]
    companies = []
    for line in lines[:FALLBACK_LINE_LIMIT]:
        # lines are already trimmed, so indented bullets lose their marker too
        if line.startswith("- "):
            line = line[2:].strip()
        companies.append(PortfolioCompany(name=line))
    return companies


def parse_match_response(text: str, fund_name: str) -> List[MatchResult]:
    """Strictly validate the schema-constrained reply; any bad item rejects the whole reply."""
    data = json.loads(text or "[]")
    if not isinstance(data, list):
        raise ValueError(f"Expected a JSON array of matches, got {type(data).__name__}")
    return [MatchResult.model_validate({**item, "fundName": fund_name}) for item in data]


# ---------- Service ----------
class MatchingService(ABC):
    """Portfolio lookup and client matching, delegated to an external model."""

    @abstractmethod
    def retrieve_portfolio(self, fund_name: str) -> List[PortfolioCompany]:
        ...

    @abstractmethod
    def match_clients(
        self, fund_name: str, clients: Sequence[Client], portfolio: Sequence[PortfolioCompany]
    ) -> List[MatchResult]:
        ...


class GeminiMatchingService(MatchingService):
    def __init__(self, client: genai.Client, model: str = DEFAULT_MODEL, match_temperature: float = 0.1):
        self.client = client
        self.model = model
        self.match_temperature = match_temperature

    def retrieve_portfolio(self, fund_name: str) -> List[PortfolioCompany]:
        """Search the web for a fund's portfolio.

        Transport errors propagate; the caller marks the fund as failed.
        """
        logger.info("Retrieving portfolio for %s", fund_name)
        try:
            # response_schema cannot be combined with the search tool, so the
            # JSON array is requested in prose and extracted from free text
            response = self.client.models.generate_content(
                model=self.model,
                contents=PORTFOLIO_PROMPT.format(fund_name=fund_name),
                config=types.GenerateContentConfig(
                    tools=[types.Tool(google_search=types.GoogleSearch())],
                    system_instruction=PORTFOLIO_SYSTEM_INSTRUCTION,
                ),
            )
        except Exception:
            logger.exception("Error fetching portfolio for %s", fund_name)
            raise

        companies = parse_portfolio_text(response.text or "")
        logger.info("Found %d portfolio companies for %s", len(companies), fund_name)
        return companies

    def match_clients(
        self, fund_name: str, clients: Sequence[Client], portfolio: Sequence[PortfolioCompany]
    ) -> List[MatchResult]:
        if not clients or not portfolio:
            return []

        prompt = MATCH_PROMPT.format(
            fund_name=fund_name,
            client_names=", ".join(c.name for c in clients),
            portfolio_names=", ".join(p.name for p in portfolio),
        )
        try:
            response = self.client.models.generate_content(
                model=self.model,
                contents=prompt,
                config=types.GenerateContentConfig(
                    response_mime_type="application/json",
                    response_schema=MATCH_SCHEMA,
                    temperature=self.match_temperature,
                ),
            )
            matches = parse_match_response(response.text, fund_name)
        except (ValueError, ValidationError) as e:
            logger.error("Unreadable match response for %s: %s", fund_name, e)
            return []
        except Exception:
            # one fund failing must not stop the rest of the analysis
            logger.exception("Error matching clients against %s", fund_name)
            return []

        logger.info("%d matches for %s", len(matches), fund_name)
        return matches


def create_service(api_key: str, model: str = DEFAULT_MODEL, match_temperature: float = 0.1) -> GeminiMatchingService:
    return GeminiMatchingService(genai.Client(api_key=api_key), model=model, match_temperature=match_temperature)
