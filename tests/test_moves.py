import random
import unittest

from game import (
    BoardState,
    Card,
    FoundationLoc,
    FreeCellLoc,
    TableauLoc,
    apply_move,
    check_invariants,
    initialize_game,
    legal_destinations,
    locator_from_json,
    locator_to_json,
)


def C(text):
    suits = {'H': 'hearts', 'D': 'diamonds', 'C': 'clubs', 'S': 'spades'}
    return Card(suits[text[-1]], text[:-1])


def mk_board(cells=(), foundations=(), columns=(), moves=0):
    cells = tuple(cells) + (None,) * (4 - len(cells))
    foundations = tuple(tuple(f) for f in foundations) + ((),) * (4 - len(foundations))
    columns = tuple(tuple(c) for c in columns) + ((),) * (8 - len(columns))
    return BoardState(free_cells=cells, foundations=foundations, tableau=columns, moves=moves)


class TestSingleCardMoves(unittest.TestCase):
    def test_given_ace_in_free_cell_when_moved_to_foundation_then_applied(self):
        s = mk_board(cells=[C('AH')], columns=[[C('5C')]])
        ns = apply_move(s, FreeCellLoc(0), FoundationLoc(0))
        self.assertIsNotNone(ns)
        assert ns is not None
        self.assertEqual(ns.foundations[0], (C('AH'),))
        self.assertIsNone(ns.free_cells[0])
        self.assertEqual(ns.moves, 1)
        # original untouched
        self.assertEqual(s.free_cells[0], C('AH'))
        self.assertEqual(s.moves, 0)

    def test_given_top_card_when_moved_to_empty_free_cell_then_applied(self):
        s = mk_board(columns=[[C('9H'), C('3S')]])
        ns = apply_move(s, TableauLoc(0), FreeCellLoc(2))
        assert ns is not None
        self.assertEqual(ns.free_cells[2], C('3S'))
        self.assertEqual(ns.tableau[0], (C('9H'),))

    def test_given_occupied_free_cell_when_moving_into_it_then_rejected(self):
        s = mk_board(cells=[C('KD')], columns=[[C('3S')]])
        self.assertIsNone(apply_move(s, TableauLoc(0), FreeCellLoc(0)))

    def test_given_free_cell_card_when_moved_to_column_then_rules_apply(self):
        s = mk_board(cells=[C('7D')], columns=[[C('8S')], [C('8H')]])
        self.assertIsNone(apply_move(s, FreeCellLoc(0), TableauLoc(1)))
        ns = apply_move(s, FreeCellLoc(0), TableauLoc(0))
        assert ns is not None
        self.assertEqual(ns.tableau[0], (C('8S'), C('7D')))

    def test_given_foundation_top_when_moved_back_to_tableau_then_applied(self):
        s = mk_board(foundations=[[C('AH'), C('2H')]], columns=[[C('3C')]])
        ns = apply_move(s, FoundationLoc(0), TableauLoc(0))
        assert ns is not None
        self.assertEqual(ns.foundations[0], (C('AH'),))
        self.assertEqual(ns.tableau[0], (C('3C'), C('2H')))

    def test_given_illegal_tableau_target_when_moving_then_state_unchanged(self):
        s = mk_board(columns=[[C('5C')], [C('9D')]])
        self.assertIsNone(apply_move(s, TableauLoc(1), TableauLoc(0)))
        self.assertEqual(s.tableau[1], (C('9D'),))

    def test_given_empty_sources_when_moving_then_rejected(self):
        s = mk_board(columns=[[C('5C')]])
        self.assertIsNone(apply_move(s, FreeCellLoc(0), TableauLoc(1)))
        self.assertIsNone(apply_move(s, TableauLoc(3), TableauLoc(1)))
        self.assertIsNone(apply_move(s, FoundationLoc(0), TableauLoc(1)))

    def test_given_out_of_range_locators_when_moving_then_rejected_without_error(self):
        s = mk_board(cells=[C('AH')], columns=[[C('5C')]])
        self.assertIsNone(apply_move(s, FreeCellLoc(4), FoundationLoc(0)))
        self.assertIsNone(apply_move(s, FreeCellLoc(-1), FoundationLoc(0)))
        self.assertIsNone(apply_move(s, FreeCellLoc(0), FoundationLoc(9)))
        self.assertIsNone(apply_move(s, TableauLoc(8), FreeCellLoc(1)))
        self.assertIsNone(apply_move(s, TableauLoc(0, 5), FreeCellLoc(1)))
        self.assertIsNone(apply_move(s, TableauLoc(0), TableauLoc(-3)))

    def test_given_same_source_and_dest_when_moving_then_rejected(self):
        s = mk_board(cells=[C('AH')], columns=[[C('5C')]])
        self.assertIsNone(apply_move(s, FreeCellLoc(0), FreeCellLoc(0)))
        self.assertIsNone(apply_move(s, TableauLoc(0), TableauLoc(0)))

    def test_given_illegal_move_when_applied_twice_then_same_rejection(self):
        s = mk_board(columns=[[C('5C')], [C('9D')]])
        first = apply_move(s, TableauLoc(1), TableauLoc(0))
        second = apply_move(s, TableauLoc(1), TableauLoc(0))
        self.assertIsNone(first)
        self.assertIsNone(second)
        self.assertEqual(s, mk_board(columns=[[C('5C')], [C('9D')]]))


class TestSequenceMoves(unittest.TestCase):
    def test_given_valid_tail_when_moved_to_empty_column_then_relocated_as_one_move(self):
        s = mk_board(columns=[[C('2H'), C('8S'), C('7D'), C('6C')], [], [C('KH')]])
        ns = apply_move(s, TableauLoc(0, 2), TableauLoc(1))
        assert ns is not None
        self.assertEqual(ns.tableau[0], (C('2H'), C('8S')))
        self.assertEqual(ns.tableau[1], (C('7D'), C('6C')))
        self.assertEqual(ns.moves, 1)

    def test_given_valid_tail_when_moved_onto_matching_card_then_applied(self):
        s = mk_board(columns=[[C('8S'), C('7D'), C('6C')], [C('8C')]])
        ns = apply_move(s, TableauLoc(0, 1), TableauLoc(1))
        assert ns is not None
        self.assertEqual(ns.tableau[1], (C('8C'), C('7D'), C('6C')))
        self.assertEqual(ns.tableau[0], (C('8S'),))

    def test_given_broken_run_when_moving_sequence_then_rejected(self):
        s = mk_board(columns=[[C('8S'), C('7C'), C('6D')], []])
        self.assertIsNone(apply_move(s, TableauLoc(0, 0), TableauLoc(1)))

    def test_given_sequence_when_first_card_does_not_fit_then_rejected(self):
        s = mk_board(columns=[[C('7D'), C('6C')], [C('9S')]])
        self.assertIsNone(apply_move(s, TableauLoc(0, 0), TableauLoc(1)))

    def test_given_no_free_space_when_moving_long_run_then_capacity_enforced(self):
        full_cells = [C('AH'), C('AD'), C('AC'), C('AS')]
        columns = [[C('9S'), C('8H'), C('7C')], [C('10D')], [C('KS')], [C('KH')],
                   [C('KD')], [C('KC')], [C('QS')], [C('QH')]]
        s = mk_board(cells=full_cells, columns=columns)
        self.assertIsNone(apply_move(s, TableauLoc(0, 0), TableauLoc(1)))
        # two empty cells give room for four cards
        roomy = mk_board(cells=full_cells[:2], columns=columns)
        ns = apply_move(roomy, TableauLoc(0, 0), TableauLoc(1))
        assert ns is not None
        self.assertEqual(ns.tableau[1], (C('10D'), C('9S'), C('8H'), C('7C')))

    def test_given_sequence_when_target_is_free_cell_then_rejected(self):
        s = mk_board(columns=[[C('8S'), C('7D')]])
        self.assertIsNone(apply_move(s, TableauLoc(0, 0), FreeCellLoc(0)))
        self.assertIsNone(apply_move(s, TableauLoc(0, 0), FoundationLoc(0)))
        # explicit top index is the same as the default
        self.assertIsNotNone(apply_move(s, TableauLoc(0, 1), FreeCellLoc(0)))


class TestLegalDestinationsAndJson(unittest.TestCase):
    def test_given_ace_when_listing_destinations_then_foundations_cells_and_columns(self):
        s = mk_board(columns=[[C('AH')], [C('2S')]])
        dests = legal_destinations(s, TableauLoc(0))
        self.assertIn(FoundationLoc(0), dests)
        self.assertIn(FreeCellLoc(0), dests)
        self.assertIn(TableauLoc(1), dests)
        self.assertIn(TableauLoc(2), dests)  # empty column
        self.assertNotIn(TableauLoc(0), dests)

    def test_given_locators_when_roundtrip_json_then_equal(self):
        for loc in (FreeCellLoc(1), FoundationLoc(3), TableauLoc(2), TableauLoc(5, 4)):
            self.assertEqual(locator_from_json(locator_to_json(loc)), loc)
        self.assertEqual(locator_to_json(TableauLoc(5, 4)), {'type': 'tableau', 'index': 5, 'cardIndex': 4})

    def test_given_malformed_json_locator_when_parsed_then_value_error(self):
        for bad in (None, [], {'type': 'stock', 'index': 0}, {'type': 'freecell'},
                    {'type': 'freecell', 'index': '1'}, {'type': 'tableau', 'index': True},
                    {'type': 'tableau', 'index': 1, 'cardIndex': 'x'}):
            with self.assertRaises(ValueError):
                locator_from_json(bad)


class TestConservation(unittest.TestCase):
    def test_given_random_move_attempts_when_applied_then_invariants_hold(self):
        rng = random.Random(2024)
        locs = ([FreeCellLoc(i) for i in range(5)] + [FoundationLoc(i) for i in range(5)]
                + [TableauLoc(i) for i in range(9)])
        for seed in range(5):
            s = initialize_game(seed=seed, now=0.0)
            for _ in range(400):
                src = rng.choice(locs)
                if isinstance(src, TableauLoc) and src.column < 8 and s.tableau[src.column] and rng.random() < 0.3:
                    src = TableauLoc(src.column, rng.randrange(len(s.tableau[src.column])))
                dst = rng.choice(locs)
                ns = apply_move(s, src, dst)
                if ns is None:
                    continue
                self.assertEqual(ns.moves, s.moves + 1)
                check_invariants(ns)
                s = ns


if __name__ == '__main__':
    unittest.main(verbosity=2)
