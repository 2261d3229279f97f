"""Package Rust (Cargo) upstream projects for Debian."""
