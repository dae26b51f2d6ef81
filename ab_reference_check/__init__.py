# Azure Board Reference Check - Package
#
# GitHub Action that requires every pull request description to cite an
# Azure Boards work item (AB#123456) or to opt out with the `no-ab` keyword,
# and reports the result as the "Azure Board Reference" check run on the
# pull request's head commit. Each stage is in its own file.
#
# The run is orchestrated by reference_check_main.py inside a GitHub Actions
# runner. It reads the pull_request event payload, classifies the description,
# and writes back to GitHub (one check run, job summary, step output).
#
# Stage flow:
#   1. Load Trigger Context -> 2. Classify References
#   -> 3. Reconcile Check Run -> 4. Publish Results
