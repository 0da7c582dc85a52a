'''
Keep track of the pipeline progress
'''



class PipelineStats:
    '''
    Numeric statistics of the pipeline run
    '''

    def __init__(self):
        self.done = 0
        self.skipped = 0


    def __repr__(self):
        return '<{cls}(done={done}, skipped={skip})>'.format(
            cls = self.__class__.__name__,
            skip = self.skipped,
            done = self.done,
        )


    def show(self):
        return '{total} files processed ({done} updated, {skip} up to date)'.format(
            total = self.total,
            done = self.done,
            skip = self.skipped,
        )


    @property
    def total(self):
        '''Total number of music files processed'''
        return self.done + self.skipped


    def record_skip(self):
        '''Record a music file that was already up to date'''
        self.skipped += 1


    def record_done(self):
        '''Record a music file that was replaced with updated version'''
        self.done += 1
