"""Match data fetching from The Blue Alliance API."""

import logging
import os
from typing import Optional

import requests

from .constants import ALLIANCES

logger = logging.getLogger('fieldscout.data_fetcher')

DEFAULT_BASE_URL = 'https://www.thebluealliance.com/api/v3'


def build_match_key(event_key: str, match_type: str, match_number: int) -> str:
    """
    Build a TBA match key.

    Examples:
        ('2026casj', 'qm', 12) -> '2026casj_qm12'
        ('2026casj', 'sf', 3)  -> '2026casj_sf3m1'
        ('2026casj', 'f', 2)   -> '2026casj_f1m2'
    """
    if match_type == 'qm':
        return f'{event_key}_qm{match_number}'
    if match_type == 'sf':
        return f'{event_key}_sf{match_number}m1'
    if match_type == 'f':
        return f'{event_key}_f1m{match_number}'
    raise ValueError(f'Unknown match type: {match_type}')


class TBADataFetcher:
    """Fetches and caches match results from The Blue Alliance."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 10.0,
        session: Optional[requests.Session] = None,
    ):
        self.api_key = api_key if api_key is not None else os.environ.get('TBA_API_KEY', '')
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers['X-TBA-Auth-Key'] = self.api_key
        self._matches: dict[str, dict] = {}

    @classmethod
    def from_config(cls, config, api_key: Optional[str] = None) -> 'TBADataFetcher':
        """Build a fetcher from a ScoutConfig."""
        return cls(api_key=api_key, base_url=config.tba_base_url, timeout=config.tba_timeout)

    def _get(self, path: str):
        url = f'{self.base_url}/{path.lstrip("/")}'
        logger.debug(f'GET {url}')
        try:
            response = self.session.get(url, timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            logger.error(f'TBA request failed for {path}: {e}')
            raise
        return response.json()

    def get_match(self, match_key: str) -> dict:
        """Full match payload (cached per key)."""
        if match_key not in self._matches:
            logger.info(f'Loading match {match_key}...')
            self._matches[match_key] = self._get(f'match/{match_key}') or {}
        return self._matches[match_key]

    def get_event_matches(self, event_key: str) -> list[dict]:
        """All matches of an event; each is added to the match cache."""
        matches = self._get(f'event/{event_key}/matches') or []
        for match in matches:
            if match.get('key'):
                self._matches[match['key']] = match
        return matches

    def get_score_breakdown(self, match_key: str, alliance: str) -> dict:
        """
        Authoritative score breakdown for one alliance.

        Returns an empty dict (and logs a warning) when the match has not been
        played or the breakdown is not published yet.
        """
        if alliance not in ALLIANCES:
            raise ValueError(f'Unknown alliance: {alliance}')
        breakdown = (self.get_match(match_key).get('score_breakdown') or {}).get(alliance)
        if not breakdown:
            logger.warning(f'No score breakdown for {match_key} {alliance}')
            return {}
        return breakdown

    def get_alliance_teams(self, match_key: str) -> dict[str, list[str]]:
        """Team keys per alliance, e.g. {'red': ['frc254', ...], 'blue': [...]}."""
        alliances = self.get_match(match_key).get('alliances') or {}
        return {
            color: list((alliances.get(color) or {}).get('team_keys') or [])
            for color in ALLIANCES
        }

    def get_validation_payload(self, match_key: str) -> dict:
        """Rosters and breakdowns in the shape validate_match() expects."""
        match = self.get_match(match_key)
        return {
            'alliances': self.get_alliance_teams(match_key),
            'score_breakdown': match.get('score_breakdown') or {},
        }

    def clear_cache(self) -> None:
        self._matches = {}
