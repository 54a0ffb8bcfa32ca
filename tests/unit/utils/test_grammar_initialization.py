"""
Tests for grammar availability checks and startup warm-up.
"""

import pytest

from syntax_parser.core.models import RuntimeState
from syntax_parser.parsing.service import ParseService
from syntax_parser.utils.grammar_initialization import (
    check_essential_grammars,
    initialize_grammars_if_needed,
)
from syntax_parser.utils.parsing_config import DEFAULT_GRAMMAR_LOCATORS, ParsingConfig


class TestCheckEssentialGrammars:
    def test_default_grammars_are_installed(self):
        availability = check_essential_grammars()

        assert set(availability) == set(DEFAULT_GRAMMAR_LOCATORS)
        assert all(availability.values())

    def test_missing_and_malformed_locators(self):
        availability = check_essential_grammars(
            {
                "python": "tree_sitter_python:language",
                "cobol": "tree_sitter_cobol_not_installed:language",
                "broken": "no_separator",
            }
        )

        assert availability == {"python": True, "cobol": False, "broken": False}


class TestInitializeGrammars:
    @pytest.mark.asyncio
    async def test_boots_without_preloading_by_default(self, parse_service):
        assert await initialize_grammars_if_needed(parse_service) is True

        assert parse_service.context.bootstrapper.state is RuntimeState.READY
        assert parse_service.context.grammar_loader.loaded_languages() == []

    @pytest.mark.asyncio
    async def test_preloads_requested_languages(self, parse_service):
        result = await initialize_grammars_if_needed(parse_service, ["python", "java"])

        assert result is True
        assert parse_service.context.parser_pool.pooled_languages() == ["java", "python"]

    @pytest.mark.asyncio
    async def test_preloads_configured_languages(self):
        service = ParseService.create(
            ParsingConfig(preload_languages=("typescript",), boot_retry_wait=0.0)
        )
        try:
            assert await initialize_grammars_if_needed(service) is True
            assert service.context.parser_pool.pooled_languages() == ["typescript"]
        finally:
            service.context.close()

    @pytest.mark.asyncio
    async def test_boot_failure_is_reported_not_raised(self):
        service = ParseService.create(
            ParsingConfig(
                engine_module="syntax_parser_engine_that_does_not_exist",
                boot_retry_attempts=1,
                boot_retry_wait=0.0,
            )
        )
        try:
            assert await initialize_grammars_if_needed(service) is False
            assert service.context.bootstrapper.state is RuntimeState.UNINITIALIZED
        finally:
            service.context.close()

    @pytest.mark.asyncio
    async def test_failed_language_does_not_block_others(self):
        locators = dict(DEFAULT_GRAMMAR_LOCATORS)
        locators["cobol"] = "tree_sitter_cobol_not_installed:language"
        service = ParseService.create(
            ParsingConfig(grammar_locators=locators, boot_retry_wait=0.0)
        )
        try:
            result = await initialize_grammars_if_needed(service, ["cobol", "python"])

            assert result is False
            assert service.context.parser_pool.pooled_languages() == ["python"]
        finally:
            service.context.close()

    @pytest.mark.asyncio
    async def test_unknown_language_is_reported(self, parse_service):
        assert await initialize_grammars_if_needed(parse_service, ["ruby"]) is False
