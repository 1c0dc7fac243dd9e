"""
Script: release_tools package
What: Holds the Python release pipeline that builds a docker image and uploads its build output.
Doing: Groups CLI entrypoints, pipeline steps, and shared utility code in one importable package.
Why: Keeps release logic readable and testable instead of spreading it across workflow YAML and scripts.
Goal: Provide one clear home for versioning, image build, and artifact upload logic.
"""
