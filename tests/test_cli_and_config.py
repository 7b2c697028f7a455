import io
import os
import unittest
from contextlib import redirect_stdout
from unittest import mock

from freecell_core.cli import main, parse_locator
from freecell_core.config import load_settings
from game import FoundationLoc, FreeCellLoc, TableauLoc


class TestCliParsing(unittest.TestCase):
    def test_given_tokens_when_parsed_then_locators(self):
        self.assertEqual(parse_locator('c2'), FreeCellLoc(2))
        self.assertEqual(parse_locator('F3'), FoundationLoc(3))
        self.assertEqual(parse_locator('t5'), TableauLoc(5))
        self.assertEqual(parse_locator('t5:3'), TableauLoc(5, 3))

    def test_given_garbage_when_parsed_then_none(self):
        for token in ('', 'x1', 'c', 'tx', 't5:', 't5:a', 'c-1'):
            self.assertIsNone(parse_locator(token))

    def test_given_fixture_when_auto_flag_then_reports_plan(self):
        out = io.StringIO()
        with redirect_stdout(out):
            main(['--fixture', '--auto'])
        text = out.getvalue()
        self.assertIn('Auto-completes in 10 moves', text)

    def test_given_fresh_deal_when_auto_flag_then_not_auto_completable(self):
        out = io.StringIO()
        with redirect_stdout(out):
            main(['--seed', '3', '--auto'])
        self.assertIn('Not auto-completable.', out.getvalue())

    def test_given_fixture_when_played_interactively_then_finishes_without_input(self):
        out = io.StringIO()
        with redirect_stdout(out), mock.patch('builtins.input', side_effect=EOFError):
            main(['--fixture'])
        text = out.getvalue()
        self.assertIn('Auto-completed 10 cards.', text)
        self.assertIn('You win in 10 moves!', text)


class TestSettings(unittest.TestCase):
    def test_given_clean_env_when_loading_then_defaults(self):
        with mock.patch.dict(os.environ, {}, clear=True):
            s = load_settings()
        self.assertEqual(s.db_path, os.path.join('data', 'freecell.db'))
        self.assertEqual(s.auto_delay_ms, 300)
        self.assertAlmostEqual(s.auto_delay_seconds, 0.3)
        self.assertEqual(s.log_level, 'INFO')
        self.assertFalse(s.debug)
        self.assertEqual(s.port, 5000)

    def test_given_overrides_when_loading_then_applied(self):
        env = {'FREECELL_DB': '/tmp/x.db', 'FREECELL_AUTO_DELAY_MS': '0', 'FREECELL_DEBUG': 'true', 'PORT': '8080'}
        with mock.patch.dict(os.environ, env, clear=True):
            s = load_settings()
        self.assertEqual(s.db_path, '/tmp/x.db')
        self.assertEqual(s.auto_delay_seconds, 0.0)
        self.assertTrue(s.debug)
        self.assertEqual(s.log_level, 'DEBUG')
        self.assertEqual(s.port, 8080)

    def test_given_bad_integer_when_loading_then_default_kept(self):
        with mock.patch.dict(os.environ, {'FREECELL_AUTO_DELAY_MS': 'soon'}, clear=True):
            s = load_settings()
        self.assertEqual(s.auto_delay_ms, 300)


if __name__ == '__main__':
    unittest.main(verbosity=2)
