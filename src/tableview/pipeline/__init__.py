"""
Pipeline Package - Row Store, Scheduling and the TableView Controller.

Import components from their modules:
    from tableview.pipeline.table_view import TableView
    from tableview.pipeline.scheduler import DirtyFlagScheduler
"""
