"""Write-side use cases."""
