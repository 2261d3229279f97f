import unittest
from unittest.mock import patch, MagicMock
from rustdeb.utils.command_executor import run_shell_command, query_host_rust_type

class TestCommandExecutor(unittest.TestCase):

    @patch('subprocess.run')
    def test_run_shell_command(self, mock_run):
        mock_run.return_value = MagicMock(stdout="ok\n", stderr="", returncode=0)
        stdout, stderr, returncode = run_shell_command(["cargo", "--version"], cwd="/src")
        self.assertEqual((stdout, stderr, returncode), ("ok\n", "", 0))
        mock_run.assert_called_once_with(
            ["cargo", "--version"], capture_output=True, text=True, env=None, check=False, cwd="/src"
        )

    @patch('rustdeb.utils.command_executor.logger')
    @patch('subprocess.run', side_effect=FileNotFoundError(2, "No such file", "cargo"))
    def test_missing_command(self, mock_run, mock_logger):
        stdout, stderr, returncode = run_shell_command(["cargo", "--version"])
        self.assertEqual(returncode, -1)
        mock_logger.error.assert_called_once_with("Command not found: cargo")

    @patch('rustdeb.utils.command_executor.logger')
    @patch('subprocess.Popen', side_effect=FileNotFoundError(2, "No such file", "cargo"))
    def test_missing_command_streaming(self, mock_popen, mock_logger):
        output, process = run_shell_command(["cargo", "vendor"], stream_output=True)
        self.assertEqual(list(output), [])
        self.assertEqual(process.returncode, -1)

    @patch('rustdeb.utils.command_executor.run_shell_command')
    def test_query_host_rust_type(self, mock_run):
        mock_run.return_value = ("x86_64-unknown-linux-gnu\n", "", 0)
        self.assertEqual(query_host_rust_type(), "x86_64-unknown-linux-gnu")
        mock_run.assert_called_once_with(["dpkg-architecture", "-qDEB_HOST_RUST_TYPE"])

    @patch('rustdeb.utils.command_executor.logger')
    @patch('rustdeb.utils.command_executor.run_shell_command')
    def test_query_host_rust_type_unavailable(self, mock_run, mock_logger):
        mock_run.return_value = ("", "dpkg-architecture: not found", -1)
        self.assertIsNone(query_host_rust_type())

if __name__ == '__main__':
    unittest.main()
