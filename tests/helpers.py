import json
from types import SimpleNamespace

from models import Fund, PortfolioCompany


class FakeModels:
    def __init__(self, replies):
        self.replies = list(replies)
        self.calls = []

    def generate_content(self, model, contents, config=None):
        self.calls.append({"model": model, "contents": contents, "config": config})
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return SimpleNamespace(text=reply)


class FakeGenaiClient:
    """Stands in for google.genai.Client; replies are returned in order."""

    def __init__(self, *replies):
        self.models = FakeModels(replies)


class FakeService:
    """MatchingService double recording the order of calls."""

    def __init__(self, portfolios=None, matches=None):
        self.portfolios = portfolios or {}
        self.matches = matches or {}
        self.calls = []

    def retrieve_portfolio(self, fund_name):
        self.calls.append(("retrieve", fund_name))
        result = self.portfolios.get(fund_name, [])
        if isinstance(result, Exception):
            raise result
        return result

    def match_clients(self, fund_name, clients, portfolio):
        self.calls.append(("match", fund_name))
        return list(self.matches.get(fund_name, []))


def make_fund(name, companies=()):
    portfolio = [PortfolioCompany(name=c) for c in companies]
    return Fund(name=name, status="completed" if portfolio else "error", portfolio=portfolio)


def as_json(value):
    return json.dumps(value, ensure_ascii=False)
