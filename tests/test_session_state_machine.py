import unittest

from splitviewer.services.session_state_machine import InvalidTransition, SessionState, SessionStateMachine


class SessionStateMachineTests(unittest.TestCase):
    def test_full_cycle(self):
        machine = SessionStateMachine()
        self.assertEqual(machine.request_start(), SessionState.CONFIGURING)
        self.assertEqual(machine.mark_running(), SessionState.RUNNING)
        self.assertTrue(machine.is_running())
        self.assertEqual(machine.mark_stopped(), SessionState.STOPPED)
        self.assertFalse(machine.is_running())

    def test_failed_configure_returns_to_stopped(self):
        machine = SessionStateMachine()
        machine.request_start()
        self.assertEqual(machine.mark_failed(), SessionState.STOPPED)

    def test_illegal_transitions(self):
        machine = SessionStateMachine()
        with self.assertRaises(InvalidTransition):
            machine.mark_running()
        with self.assertRaises(InvalidTransition):
            machine.mark_stopped()
        machine.request_start()
        with self.assertRaises(InvalidTransition):
            machine.request_start()
        self.assertEqual(machine.state, SessionState.CONFIGURING)
