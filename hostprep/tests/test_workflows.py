# Copyright 2018-present Network Optix, Inc. Licensed under MPL 2.0: www.mozilla.org/MPL/2.0/
import unittest

from hostprep._config import global_config
from hostprep.workflows import WORKFLOWS


class TestWorkflows(unittest.TestCase):

    def test_names_unique(self):
        for workflow in WORKFLOWS.values():
            names = [step.name for step in workflow.steps(global_config)]
            self.assertEqual(len(names), len(set(names)), workflow.name)
            self.assertTrue(names, workflow.name)

    def test_log_configured(self):
        for workflow in WORKFLOWS.values():
            self.assertIn(workflow.log_path_key, global_config, workflow.name)

    def test_workstation_order(self):
        steps = WORKFLOWS['ubuntu_workstation'].steps(global_config)
        names = [step.name for step in steps]
        self.assertEqual(names[:3], ['update', 'user_create', 'vim_config'])
        self.assertEqual(names[-1], 'reminders')

    def test_checks_change_nothing(self):
        self.assertFalse(WORKFLOWS['boot_check'].changes_host)


if __name__ == '__main__':
    unittest.main()
